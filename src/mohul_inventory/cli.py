"""Console front-end for the inventory system.

The module holds the interactive session: the top-level log in / sign up /
exit loop and the role menus reached after a successful login. Menus are
built from the capability tuple of the logged-in role, so one dispatcher
serves every role. All reads and writes go through a :class:`Console` so the
same session can be driven by tests or an alternative front-end.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from . import core_logic, log
from .constants import ROLE_CAPABILITIES, ROLE_CHOICES, Capability, Role, SessionState


BANNER = "\n\t\t\tMOHUL\n\tInventory Management System\n"
TOP_MENU = ("1. Log In", "2. Sign Up", "3. Exit")
CHOICE_PROMPT = "Enter your choice: "
RETRY_PROMPT = "Invalid input. Try again: "


@dataclass(frozen=True)
class Console:
    """Line-oriented terminal I/O used by the session."""

    read: Callable[[str], str] = input
    write: Callable[[str], None] = print


@dataclass(frozen=True)
class MenuOption:
    """Describe one numbered entry of a role menu and how it is executed."""

    capability: Capability
    label: str
    execute: Callable[["Session"], None]


def prompt_int(console: Console, prompt: str) -> int:
    """Read an integer, re-prompting until the operator enters one."""
    raw = console.read(prompt)
    while True:
        try:
            return int(raw.strip())
        except ValueError:
            raw = console.read(RETRY_PROMPT)


def prompt_text(console: Console, prompt: str, *, strip: bool = True) -> str:
    raw = console.read(prompt)
    return raw.strip() if strip else raw


class Session:
    """Interactive session over one runtime context.

    States move from ``UNAUTHENTICATED`` to ``AUTHENTICATED`` on login, back
    on log out, and to ``EXITING`` only from the top menu.
    """

    def __init__(self, context: core_logic.RuntimeContext, console: Optional[Console] = None) -> None:
        self.context = context
        self.console = console if console is not None else Console()
        self.state = SessionState.UNAUTHENTICATED
        self.account: Optional[core_logic.Account] = None

    @property
    def accounts(self) -> core_logic.AccountManager:
        return self.context.accounts

    @property
    def stock(self) -> core_logic.StockManager:
        return self.context.stock

    def write(self, message: str) -> None:
        self.console.write(message)

    def run(self) -> None:
        """Drive the session until the operator chooses Exit."""
        while self.state is not SessionState.EXITING:
            if self.state is SessionState.UNAUTHENTICATED:
                self.top_menu_step()
            else:
                self.role_menu_step()

    def top_menu_step(self) -> None:
        for line in TOP_MENU:
            self.write(line)
        choice = prompt_int(self.console, CHOICE_PROMPT)
        if choice == 1:
            self.login()
        elif choice == 2:
            self.sign_up()
        elif choice == 3:
            self.exit()
        else:
            self.write("Invalid choice. Try again.")

    def role_menu_step(self) -> None:
        account = self.account
        if account is None:
            self.state = SessionState.UNAUTHENTICATED
            return
        options = build_menu(account.role)
        self.write(f"--- {account.role.value} Menu ---")
        for number, option in enumerate(options, start=1):
            self.write(f"{number}. {option.label}")
        choice = prompt_int(self.console, CHOICE_PROMPT)
        dispatch_menu_choice(self, options, choice)

    def login(self) -> None:
        self.write("\n--- Log In ---")
        account_id = prompt_text(self.console, "Enter ID: ")
        password = prompt_text(self.console, "Enter Password: ")
        account = self.accounts.authenticate(account_id, password)
        if account is None:
            self.write("Invalid ID or Password.")
            return
        self.write(f"\nWelcome, {account.name}!")
        self.account = account
        self.state = SessionState.AUTHENTICATED

    def sign_up(self) -> None:
        """Register a new account; the operator still has to log in afterwards."""
        self.write("\n--- Sign Up ---")
        name = prompt_text(self.console, "Enter Name: ")
        account_id = prompt_text(self.console, "Enter ID: ")
        role = self.prompt_role()
        password = prompt_text(self.console, "Enter Password: ")
        try:
            self.accounts.register(name, account_id, role, password)
        except core_logic.IdTakenError:
            self.write("Error: ID already taken. Please try again with a different ID.")
            return
        self.write("User Registered Successfully!")

    def prompt_role(self) -> Role:
        while True:
            self.write("Enter Designation (Choose one): ")
            for number, role in ROLE_CHOICES.items():
                self.write(f"{number}. {role.value}")
            role = ROLE_CHOICES.get(prompt_int(self.console, CHOICE_PROMPT))
            if role is not None:
                return role
            self.write("Invalid choice. Try again.")

    def log_out(self) -> None:
        self.write("Logging Out...")
        self.account = None
        self.state = SessionState.UNAUTHENTICATED

    def exit(self) -> None:
        """Flush both stores and end the session; save failures are reported only."""
        for failure in core_logic.persist_stores(self.context):
            self.write(str(failure))
        self.write("Exiting... Goodbye!")
        self.state = SessionState.EXITING

    def choose_product(self, title: str) -> Optional[str]:
        self.write(f"\n--- {title} ---")
        self.write("Available Products:")
        names = self.stock.product_names()
        for number, name in enumerate(names, start=1):
            self.write(f"{number}. {name}")
        choice = prompt_int(self.console, "Choose a product: ")
        if 0 < choice <= len(names):
            return names[choice - 1]
        self.write("Invalid choice.")
        return None


def run_view_stock(session: Session) -> None:
    session.write("\n--- Current Stock ---")
    for level in session.stock.view_stock():
        session.write(f"{level.product_name}: {level.quantity} units")
        if level.is_low:
            session.write("\tWarning: Running Low!")


def run_add_production(session: Session) -> None:
    product_name = session.choose_product("Add Production")
    if product_name is None:
        return
    quantity = prompt_int(session.console, "Enter Quantity: ")
    batch_tag = prompt_text(session.console, "Enter Batch Number: ", strip=False)
    date = prompt_text(session.console, "Enter Date: ", strip=False)
    movement = session.stock.add_production(product_name, quantity, batch_tag, date)
    session.write(
        f"{movement.quantity} units of {movement.product_name} added. "
        f"Batch: {movement.batch_tag}, Date: {movement.date}"
    )


def run_sell_product(session: Session) -> None:
    product_name = session.choose_product("Sell Product")
    if product_name is None:
        return
    quantity = prompt_int(session.console, "Enter Quantity to Sell: ")
    try:
        movement = session.stock.sell(product_name, quantity)
    except (core_logic.InsufficientStockError, core_logic.UnknownProductError):
        session.write("Insufficient stock or invalid product.")
        return
    session.write(f"{movement.quantity} units of {movement.product_name} sold.")


def run_return_product(session: Session) -> None:
    product_name = session.choose_product("Return Product")
    if product_name is None:
        return
    quantity = prompt_int(session.console, "Enter Quantity to Return: ")
    movement = session.stock.return_product(product_name, quantity)
    session.write(f"{movement.quantity} units of {movement.product_name} returned.")


def run_view_employees(session: Session) -> None:
    session.write("\n--- Employee Information ---")
    for account in session.accounts.list_all():
        session.write(
            f"Name: {account.name}, ID: {account.account_id}, Designation: {account.role.value}"
        )


def run_log_out(session: Session) -> None:
    session.log_out()


def build_menu_table() -> Dict[Capability, MenuOption]:
    """Index every menu option by the capability it exposes."""
    handlers: Dict[Capability, Callable[[Session], None]] = {
        Capability.VIEW_STOCK: run_view_stock,
        Capability.ADD_PRODUCTION: run_add_production,
        Capability.SELL_PRODUCT: run_sell_product,
        Capability.RETURN_PRODUCT: run_return_product,
        Capability.VIEW_EMPLOYEES: run_view_employees,
        Capability.LOG_OUT: run_log_out,
    }
    return {
        capability: MenuOption(capability=capability, label=capability.value, execute=handler)
        for capability, handler in handlers.items()
    }


MENU_TABLE: Mapping[Capability, MenuOption] = build_menu_table()


def build_menu(role: Role) -> List[MenuOption]:
    """Return the options a role sees, in on-screen order."""
    return [MENU_TABLE[capability] for capability in ROLE_CAPABILITIES[role]]


def dispatch_menu_choice(session: Session, options: Sequence[MenuOption], choice: int) -> None:
    """Run the option numbered ``choice`` (1-based) or report an invalid choice."""
    if not 0 < choice <= len(options):
        session.write("Invalid choice. Try again.")
        return
    option = options[choice - 1]
    try:
        option.execute(session)
    except core_logic.BusinessRuleViolation as error:
        session.write(str(error))


def open_session(context: core_logic.RuntimeContext, console: Optional[Console] = None) -> Session:
    """Load both stores into ``context`` and return a ready session.

    Read failures are shown to the operator and the session starts with
    whatever was loaded.
    """
    session = Session(context, console)
    for failure in core_logic.load_stores(context):
        session.write(str(failure))
    return session


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="mohul-inventory",
        description="Interactive inventory and account manager for Mohul.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (defaults to ./config.ini when present).",
    )
    return parser


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for the console session."""
    return core_logic.load_runtime_context(config_path)


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into exit codes."""
    if isinstance(error, EOFError):
        log.error("Input stream closed; changes since start-up were not saved")
        return 1
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    if isinstance(error, ValueError):
        log.error("Invalid configuration or data file: %s", error)
        return 2
    log.error("%s", error)
    return 1


def main(argv: Sequence[str] | None = None, console: Optional[Console] = None) -> int:
    """CLI entry point that loads the stores and runs the interactive session."""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console if console is not None else Console()
    try:
        context = load_runtime_context(args.config)
        console.write(BANNER)
        session = open_session(context, console)
        session.run()
        return 0
    except Exception as error:  # centralised error handler tested separately
        return handle_cli_error(error)


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
