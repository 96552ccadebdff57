"""Business logic layer for the inventory system.

This module owns the two in-memory stores (accounts and stock levels) and
the rules applied to them. It consumes the Data Access Layer (DAL) for all
file I/O, and nothing is written back until the session asks for a flush.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from . import data_manager, log
from .constants import (
    DEFAULT_CATALOG,
    LOW_STOCK_THRESHOLD,
    ROLE_CAPABILITIES,
    Capability,
    MovementType,
    Role,
)


class BusinessRuleViolation(Exception):
    """Raised when a requested operation violates a domain constraint."""


class IdTakenError(BusinessRuleViolation):
    """Raised when registering an account id that already exists."""


class UnknownProductError(BusinessRuleViolation):
    """Raised when an operation names a product outside the catalog."""


class InsufficientStockError(BusinessRuleViolation):
    """Raised when a sale asks for more units than are on hand."""


class StorageError(Exception):
    """Raised when a store cannot be read from or written to its backend."""


@dataclass(frozen=True)
class Account:
    """A login identity whose role fixes the menu it can reach."""

    name: str
    account_id: str
    role: Role
    password: str = field(repr=False)

    @property
    def capabilities(self) -> Tuple[Capability, ...]:
        return ROLE_CAPABILITIES[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class StockLevel:
    """One row of the stock report."""

    product_name: str
    quantity: int
    is_low: bool


@dataclass(frozen=True)
class StockMovement:
    """Outcome of a stock mutation.

    ``batch_tag`` and ``date`` are only echoed back to the operator; they are
    never written to the inventory file.
    """

    movement_type: MovementType
    product_name: str
    quantity: int
    balance: int
    batch_tag: Optional[str] = None
    date: Optional[str] = None


def _account_from_record(record: data_manager.AccountRecord) -> Account:
    return Account(
        name=record.name,
        account_id=record.account_id,
        role=record.role,
        password=record.password,
    )


def _record_from_account(account: Account) -> data_manager.AccountRecord:
    return data_manager.AccountRecord(
        name=account.name,
        account_id=account.account_id,
        role=account.role,
        password=account.password,
    )


class AccountManager:
    """Credential store keyed by account id.

    Passwords are kept and compared as plaintext to stay compatible with the
    existing ``users.txt`` format.
    """

    def __init__(self, repository: Optional[data_manager.AccountRepository] = None) -> None:
        self._repository = repository
        self._accounts: Dict[str, Account] = {}

    def __len__(self) -> int:
        return len(self._accounts)

    def register(self, name: str, account_id: str, role: Role, password: str) -> Account:
        """Create a new account.

        Raises:
            IdTakenError: If ``account_id`` already belongs to an account. The
                existing account is left untouched.
        """
        if self.is_id_taken(account_id):
            log.warning("Registration rejected: id '%s' already taken", account_id)
            raise IdTakenError(f"ID already taken: {account_id}")
        account = Account(name=name, account_id=account_id, role=Role(role), password=password)
        self._accounts[account_id] = account
        log.info("Registered %s account '%s'", account.role.value, account_id)
        return account

    def authenticate(self, account_id: str, password: str) -> Optional[Account]:
        """Return the account when the id exists and the password matches exactly."""
        account = self._accounts.get(account_id)
        if account is not None and account.password == password:
            log.info("Login succeeded for '%s'", account_id)
            return account
        log.warning("Login failed for '%s'", account_id)
        return None

    def is_id_taken(self, account_id: str) -> bool:
        return account_id in self._accounts

    def list_all(self) -> List[Account]:
        return list(self._accounts.values())

    def load(self) -> int:
        """Merge accounts from the repository into memory.

        A later record with an id already in memory replaces the earlier one.

        Returns:
            int: Number of records read.

        Raises:
            StorageError: If the backend cannot be read. Accounts parsed before
                the failure stay loaded.
            ValueError: If a record carries an unknown role.
        """
        if self._repository is None:
            return 0
        loaded = 0
        try:
            for record in self._repository.load():
                self._accounts[record.account_id] = _account_from_record(record)
                loaded += 1
        except OSError as exc:
            log.error("Error loading users after %d records: %s", loaded, exc)
            raise StorageError(f"Error loading users: {exc}") from exc
        log.info("Loaded %d account records", loaded)
        return loaded

    def persist(self) -> int:
        """Write every account back to the repository.

        Raises:
            StorageError: If the backend cannot be written.
        """
        if self._repository is None:
            return 0
        try:
            written = self._repository.save(
                _record_from_account(account) for account in self._accounts.values()
            )
        except OSError as exc:
            log.error("Error saving users: %s", exc)
            raise StorageError(f"Error saving users: {exc}") from exc
        log.info("Persisted %d account records", written)
        return written


class StockManager:
    """Quantity counters for a fixed, ordered product catalog.

    The catalog is seeded at construction with zero units per product and
    cannot grow at runtime.
    """

    def __init__(
        self,
        catalog: Sequence[str] = DEFAULT_CATALOG,
        repository: Optional[data_manager.StockRepository] = None,
        *,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    ) -> None:
        if not catalog:
            raise ValueError("Catalog must list at least one product")
        self._repository = repository
        self._low_stock_threshold = low_stock_threshold
        self._quantities: Dict[str, int] = {name: 0 for name in catalog}

    @property
    def low_stock_threshold(self) -> int:
        return self._low_stock_threshold

    def product_names(self) -> List[str]:
        return list(self._quantities)

    def quantity_of(self, product_name: str) -> int:
        return self._require_product(product_name)

    def _require_product(self, product_name: str) -> int:
        try:
            return self._quantities[product_name]
        except KeyError as exc:
            log.warning("Stock lookup failed for product '%s'", product_name)
            raise UnknownProductError(f"Invalid product name: {product_name}") from exc

    def add_production(
        self,
        product_name: str,
        quantity: int,
        batch_tag: Optional[str] = None,
        date: Optional[str] = None,
    ) -> StockMovement:
        """Increase stock with newly manufactured units.

        No positivity check is applied to ``quantity``.

        Raises:
            UnknownProductError: If the product is not in the catalog.
        """
        balance = self._require_product(product_name) + quantity
        self._quantities[product_name] = balance
        log.info(
            "Recorded PRODUCTION of %d x '%s' (batch=%s, date=%s, balance=%d)",
            quantity,
            product_name,
            batch_tag,
            date,
            balance,
        )
        return StockMovement(
            movement_type=MovementType.PRODUCTION,
            product_name=product_name,
            quantity=quantity,
            balance=balance,
            batch_tag=batch_tag,
            date=date,
        )

    def sell(self, product_name: str, quantity: int) -> StockMovement:
        """Decrease stock for a sale when enough units are on hand.

        Only ``quantity <= on hand`` is checked, so a negative quantity passes
        and raises the balance.

        Raises:
            UnknownProductError: If the product is not in the catalog.
            InsufficientStockError: If ``quantity`` exceeds the units on hand.
                Stock is left unchanged.
        """
        current = self._require_product(product_name)
        if quantity > current:
            log.warning(
                "Sale rejected for '%s': requested %d, available %d",
                product_name,
                quantity,
                current,
            )
            raise InsufficientStockError(
                f"Insufficient stock for '{product_name}': requested {quantity}, available {current}"
            )
        balance = current - quantity
        self._quantities[product_name] = balance
        log.info("Recorded SALE of %d x '%s' (balance=%d)", quantity, product_name, balance)
        return StockMovement(
            movement_type=MovementType.SALE,
            product_name=product_name,
            quantity=quantity,
            balance=balance,
        )

    def return_product(self, product_name: str, quantity: int) -> StockMovement:
        """Put returned units back into stock.

        Raises:
            UnknownProductError: If the product is not in the catalog.
        """
        balance = self._require_product(product_name) + quantity
        self._quantities[product_name] = balance
        log.info("Recorded RETURN of %d x '%s' (balance=%d)", quantity, product_name, balance)
        return StockMovement(
            movement_type=MovementType.RETURN,
            product_name=product_name,
            quantity=quantity,
            balance=balance,
        )

    def view_stock(self) -> List[StockLevel]:
        return [
            StockLevel(
                product_name=name,
                quantity=quantity,
                is_low=quantity < self._low_stock_threshold,
            )
            for name, quantity in self._quantities.items()
        ]

    def load(self) -> int:
        """Add persisted quantities on top of the current counters.

        Records naming a product outside the catalog are ignored.

        Returns:
            int: Number of records applied to the catalog.

        Raises:
            StorageError: If the backend cannot be read. Quantities applied
                before the failure are kept.
            ValueError: If a record carries a non-integer quantity.
        """
        if self._repository is None:
            return 0
        applied = 0
        try:
            for record in self._repository.load():
                if record.product_name not in self._quantities:
                    log.info("Ignoring unknown product '%s' in inventory file", record.product_name)
                    continue
                self._quantities[record.product_name] += record.quantity
                applied += 1
        except OSError as exc:
            log.error("Error loading inventory after %d records: %s", applied, exc)
            raise StorageError(f"Error loading inventory: {exc}") from exc
        log.info("Loaded %d inventory records", applied)
        return applied

    def persist(self) -> int:
        """Write one record per catalog product to the repository.

        Raises:
            StorageError: If the backend cannot be written.
        """
        if self._repository is None:
            return 0
        try:
            written = self._repository.save(
                data_manager.StockRecord(product_name=name, quantity=quantity)
                for name, quantity in self._quantities.items()
            )
        except OSError as exc:
            log.error("Error saving inventory: %s", exc)
            raise StorageError(f"Error saving inventory: {exc}") from exc
        log.info("Persisted %d inventory records", written)
        return written


@dataclass(frozen=True)
class RuntimeContext:
    """Container for settings and the managers that own the two stores."""

    settings: data_manager.ConfigSettings
    accounts: AccountManager
    stock: StockManager


def build_runtime_context(settings: data_manager.ConfigSettings) -> RuntimeContext:
    """Wire text-file repositories and managers for ``settings``."""
    accounts = AccountManager(data_manager.TextAccountStore(settings.users_file))
    stock = StockManager(
        settings.catalog,
        data_manager.TextStockStore(settings.inventory_file),
        low_stock_threshold=settings.low_stock_threshold,
    )
    return RuntimeContext(settings=settings, accounts=accounts, stock=stock)


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Resolve settings and build an empty runtime context.

    When no configuration file is given or found in the working directory,
    the built-in defaults (``users.txt`` and ``inventory.txt`` in the working
    directory) apply. The stores are not read here; see :func:`load_stores`.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        ValueError: If the configuration holds an invalid value.
    """
    located_config = data_manager.find_config_file(config_path)
    if located_config is None:
        settings = data_manager.default_settings()
        log.info("No configuration file found; using defaults")
    else:
        resolved_config = Path(located_config).expanduser().resolve()
        parser = data_manager.read_config(resolved_config)
        settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
        log.info("Loaded configuration from '%s'", resolved_config)
    return build_runtime_context(settings)


def load_stores(context: RuntimeContext) -> List[StorageError]:
    """Read both stores, collecting I/O failures instead of stopping.

    Malformed data (``ValueError``) is not collected and propagates.
    """
    failures: List[StorageError] = []
    for store in (context.accounts, context.stock):
        try:
            store.load()
        except StorageError as error:
            failures.append(error)
    return failures


def persist_stores(context: RuntimeContext) -> List[StorageError]:
    """Flush both stores, collecting I/O failures so one cannot block the other."""
    failures: List[StorageError] = []
    for store in (context.accounts, context.stock):
        try:
            store.persist()
        except StorageError as error:
            failures.append(error)
    return failures
