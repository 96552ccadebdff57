"""Enumerations and fixed values shared across the inventory modules.

Keeps roles, menu capabilities, and the product catalog in one place so the
record store, the managers, and the console session agree on the same
identifiers.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


DEFAULT_USERS_FILE = "users.txt"
DEFAULT_INVENTORY_FILE = "inventory.txt"
CONFIG_FILE_NAME = "config.ini"

# Presentation order of the catalog; every product starts at zero units.
DEFAULT_CATALOG: Tuple[str, ...] = ("Hair Oil", "Hair Pack", "Hair Spray")

LOW_STOCK_THRESHOLD = 20

FIELD_DELIMITER = ","


class Role(str, Enum):
    """Enumerate the account designations accepted at sign-up and on disk."""

    OWNER = "Owner"
    MANAGER = "Manager"
    STAFF = "Staff"


class Capability(str, Enum):
    """Enumerate the operations a role menu can expose."""

    VIEW_STOCK = "View Stock"
    ADD_PRODUCTION = "Add Production"
    SELL_PRODUCT = "Sell Product"
    RETURN_PRODUCT = "Return Product"
    VIEW_EMPLOYEES = "View Employee Info"
    LOG_OUT = "Log Out"


class MovementType(str, Enum):
    """Enumerate the stock mutations recorded by the stock manager."""

    PRODUCTION = "PRODUCTION"
    SALE = "SALE"
    RETURN = "RETURN"


class SessionState(str, Enum):
    """Enumerate the states of the interactive console session."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATED = "AUTHENTICATED"
    EXITING = "EXITING"


_FULL_MENU: Tuple[Capability, ...] = (
    Capability.VIEW_STOCK,
    Capability.ADD_PRODUCTION,
    Capability.SELL_PRODUCT,
    Capability.RETURN_PRODUCT,
    Capability.VIEW_EMPLOYEES,
    Capability.LOG_OUT,
)

# Menu entries per role, in the order they are numbered on screen.
ROLE_CAPABILITIES: Dict[Role, Tuple[Capability, ...]] = {
    Role.OWNER: _FULL_MENU,
    Role.MANAGER: _FULL_MENU,
    Role.STAFF: tuple(cap for cap in _FULL_MENU if cap is not Capability.VIEW_EMPLOYEES),
}

# Sign-up selection numbers.
ROLE_CHOICES: Dict[int, Role] = {
    1: Role.OWNER,
    2: Role.MANAGER,
    3: Role.STAFF,
}


__all__ = [
    "DEFAULT_USERS_FILE",
    "DEFAULT_INVENTORY_FILE",
    "CONFIG_FILE_NAME",
    "DEFAULT_CATALOG",
    "LOW_STOCK_THRESHOLD",
    "FIELD_DELIMITER",
    "Role",
    "Capability",
    "MovementType",
    "SessionState",
    "ROLE_CAPABILITIES",
    "ROLE_CHOICES",
]
