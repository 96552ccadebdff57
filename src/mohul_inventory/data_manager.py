"""Data access layer for the inventory system.

This module provides low-level helpers that read from and write to the two
flat text files backing the application (``users.txt`` and
``inventory.txt``). Business rules belong elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing an optional ``config.ini``.
2. Line codecs: converting between comma-delimited lines and typed records.
3. Repositories: streaming records from a file and writing them back, with
   the file handle scoped so it is closed whether or not I/O fails.
"""


from __future__ import annotations

import configparser
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

from . import log
from .constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CATALOG,
    DEFAULT_INVENTORY_FILE,
    DEFAULT_USERS_FILE,
    FIELD_DELIMITER,
    LOW_STOCK_THRESHOLD,
    Role,
)


ACCOUNT_FIELD_COUNT = 4
STOCK_FIELD_COUNT = 2

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    users_file: Path
    inventory_file: Path
    catalog: Tuple[str, ...] = DEFAULT_CATALOG
    low_stock_threshold: int = LOW_STOCK_THRESHOLD


@dataclass(frozen=True)
class AccountRecord:
    """In-memory view of one line from the accounts file."""

    name: str
    account_id: str
    role: Role
    password: str


@dataclass(frozen=True)
class StockRecord:
    """In-memory view of one line from the inventory file."""

    product_name: str
    quantity: int


def find_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Locate the optional configuration file.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification so a missing explicit file is reported later by
    :func:`read_config`. Otherwise the current working directory is checked
    for ``CONFIG_FILE_NAME``.

    Args:
        explicit_path (Path | None): Optional path to use instead of looking in
            the working directory.

    Returns:
        Path | None: The explicit path, the discovered configuration file, or
            ``None`` when the program should run on built-in defaults.
    """

    if explicit_path:
        return explicit_path

    candidate = Path.cwd() / CONFIG_FILE_NAME
    if candidate.exists():
        return candidate
    return None


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Args:
        config_path (Path): Path to the configuration file, relative or
            absolute.

    Returns:
        configparser.ConfigParser: Initialized parser containing the raw
            configuration data.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = Path(config_path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    Every entry is optional and falls back to the built-in default. Relative
    file paths are anchored to ``base_path`` (the config file's directory in
    practice) or the current working directory.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory used to resolve relative paths.

    Returns:
        ConfigSettings: Immutable settings container.

    Raises:
        ValueError: If the threshold is not an integer or the catalog is empty
            or lists a product twice.
    """

    users_raw = parser.get("Files", "UsersFile", fallback=DEFAULT_USERS_FILE)
    inventory_raw = parser.get("Files", "InventoryFile", fallback=DEFAULT_INVENTORY_FILE)
    threshold = parser.getint("Stock", "LowStockThreshold", fallback=LOW_STOCK_THRESHOLD)

    catalog = DEFAULT_CATALOG
    if parser.has_option("Catalog", "Products"):
        catalog = parse_catalog(parser.get("Catalog", "Products"))

    return ConfigSettings(
        users_file=_resolve_path(users_raw, base_path),
        inventory_file=_resolve_path(inventory_raw, base_path),
        catalog=catalog,
        low_stock_threshold=threshold,
    )


def default_settings(base_path: Optional[Path] = None) -> ConfigSettings:
    """Return the settings used when no configuration file is present."""

    return parse_settings(configparser.ConfigParser(), base_path=base_path)


def parse_catalog(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated product list, preserving its order."""

    names = [name.strip() for name in raw.split(FIELD_DELIMITER)]
    names = [name for name in names if name]
    if not names:
        raise ValueError("Catalog must list at least one product")
    if len(set(names)) != len(names):
        raise ValueError(f"Catalog lists a product more than once: {raw}")
    return tuple(names)


def _resolve_path(raw: str, base_path: Optional[Path]) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        path = (base_path / path).resolve()
    return path


def split_record(line: str, expected_fields: int) -> Optional[List[str]]:
    """Split one persisted line into its fields.

    Fields are not escaped, so a delimiter inside a value changes the field
    count and the whole line is treated as having the wrong shape. Trailing
    empty fields are dropped before counting, so ``Hair Oil,`` has one field
    and ``Hair Oil,5,`` has two.

    Args:
        line (str): Raw line, with or without its terminator.
        expected_fields (int): Number of fields a well-formed line carries.

    Returns:
        list[str] | None: The fields, or ``None`` when the line should be
            skipped.
    """

    fields = line.rstrip("\r\n").split(FIELD_DELIMITER)
    while fields and fields[-1] == "":
        fields.pop()
    if len(fields) != expected_fields:
        return None
    return fields


def serialize_account(record: AccountRecord) -> str:
    """Convert an account record into its ``name,id,role,password`` line."""

    return FIELD_DELIMITER.join(
        [record.name, record.account_id, record.role.value, record.password]
    )


def deserialize_account(fields: Sequence[str]) -> AccountRecord:
    """Convert the four fields of an account line into a typed record.

    Args:
        fields (Sequence[str]): Output of :func:`split_record`.

    Returns:
        AccountRecord: Typed account row.

    Raises:
        ValueError: If the role token is not exactly one of the known roles.
    """

    name, account_id, role_token, password = fields
    try:
        role = Role(role_token)
    except ValueError as exc:
        raise ValueError(f"Invalid designation in file: {role_token}") from exc
    return AccountRecord(name=name, account_id=account_id, role=role, password=password)


def serialize_stock(record: StockRecord) -> str:
    """Convert a stock record into its ``name,quantity`` line."""

    return FIELD_DELIMITER.join([record.product_name, str(record.quantity)])


def deserialize_stock(fields: Sequence[str]) -> StockRecord:
    """Convert the two fields of an inventory line into a typed record.

    Quantities must be plain base-10 integers with an optional sign; negative
    values are accepted as-is.

    Raises:
        ValueError: If the quantity field is not an integer.
    """

    product_name, quantity_raw = fields
    if not _INTEGER_PATTERN.fullmatch(quantity_raw):
        raise ValueError(f"Invalid quantity for '{product_name}' in file: {quantity_raw!r}")
    return StockRecord(product_name=product_name, quantity=int(quantity_raw))


def iter_account_records(path: Path) -> Iterator[AccountRecord]:
    """Stream account records from ``path``.

    Lines with the wrong number of fields are skipped. Records are yielded
    as they are parsed so callers keep everything read before a failure.
    Bytes that are not valid UTF-8 are replaced rather than rejected.

    Raises:
        OSError: If the file cannot be opened or read.
        ValueError: If a well-shaped line carries an unknown role.
    """

    with Path(path).expanduser().open("r", encoding="utf-8", errors="replace") as handle:
        for line_number, line in enumerate(handle, start=1):
            fields = split_record(line, ACCOUNT_FIELD_COUNT)
            if fields is None:
                log.debug("Skipping account line %d in '%s'", line_number, path)
                continue
            yield deserialize_account(fields)


def iter_stock_records(path: Path) -> Iterator[StockRecord]:
    """Stream stock records from ``path``.

    Raises:
        OSError: If the file cannot be opened or read.
        ValueError: If a well-shaped line carries a non-integer quantity.
    """

    with Path(path).expanduser().open("r", encoding="utf-8", errors="replace") as handle:
        for line_number, line in enumerate(handle, start=1):
            fields = split_record(line, STOCK_FIELD_COUNT)
            if fields is None:
                log.debug("Skipping inventory line %d in '%s'", line_number, path)
                continue
            yield deserialize_stock(fields)


def write_account_records(path: Path, records: Iterable[AccountRecord]) -> int:
    """Overwrite ``path`` with one line per account and return the count."""

    return _write_lines(path, (serialize_account(record) for record in records))


def write_stock_records(path: Path, records: Iterable[StockRecord]) -> int:
    """Overwrite ``path`` with one line per product and return the count."""

    return _write_lines(path, (serialize_stock(record) for record in records))


def _write_lines(path: Path, lines: Iterable[str]) -> int:
    dest = Path(path).expanduser()
    dest.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with dest.open("w", encoding="utf-8", newline="\n") as handle:
        for line in lines:
            handle.write(line + "\n")
            written += 1
    return written


class AccountRepository(Protocol):
    """Storage backend contract for account records."""

    def load(self) -> Iterator[AccountRecord]: ...

    def save(self, records: Iterable[AccountRecord]) -> int: ...


class StockRepository(Protocol):
    """Storage backend contract for stock records."""

    def load(self) -> Iterator[StockRecord]: ...

    def save(self, records: Iterable[StockRecord]) -> int: ...


@dataclass(frozen=True)
class TextAccountStore:
    """Account repository backed by a comma-delimited text file."""

    path: Path

    def load(self) -> Iterator[AccountRecord]:
        return iter_account_records(self.path)

    def save(self, records: Iterable[AccountRecord]) -> int:
        return write_account_records(self.path, records)


@dataclass(frozen=True)
class TextStockStore:
    """Stock repository backed by a comma-delimited text file."""

    path: Path

    def load(self) -> Iterator[StockRecord]:
        return iter_stock_records(self.path)

    def save(self, records: Iterable[StockRecord]) -> int:
        return write_stock_records(self.path, records)
