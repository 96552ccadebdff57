"""Utility for initializing the inventory data files.

The module doubles as a script (``python setup_data.py``) and as a library
used by tests or other tooling. It writes an empty accounts file and an
inventory file listing every catalog product at zero units.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from mohul_inventory import data_manager
from mohul_inventory.constants import CONFIG_FILE_NAME, DEFAULT_CATALOG


@dataclass(frozen=True)
class SetupResult:
    """Paths written by :func:`create_data_files`."""

    users_file: Path
    inventory_file: Path


def create_data_files(
    users_file: Path,
    inventory_file: Path,
    *,
    catalog: Sequence[str] = DEFAULT_CATALOG,
    overwrite: bool = False,
) -> SetupResult:
    """Create the accounts and inventory files.

    When ``overwrite`` is ``False`` (the default) this function raises
    ``FileExistsError`` if either target already exists, and nothing is
    written.
    """

    targets: Tuple[Path, Path] = (
        Path(users_file).expanduser().resolve(),
        Path(inventory_file).expanduser().resolve(),
    )
    if not overwrite:
        for target in targets:
            if target.exists():
                raise FileExistsError(f"Refusing to overwrite existing data file: {target}")

    users_path, inventory_path = targets
    data_manager.write_account_records(users_path, [])
    data_manager.write_stock_records(
        inventory_path,
        [data_manager.StockRecord(product_name=name, quantity=0) for name in catalog],
    )
    return SetupResult(users_file=users_path, inventory_file=inventory_path)


def run_from_config(config_path: Optional[Path], *, overwrite: bool = False) -> SetupResult:
    """Create the data files named by ``config_path`` or by the defaults."""

    if config_path is None:
        settings = data_manager.default_settings()
    else:
        resolved = Path(config_path).expanduser().resolve()
        parser = data_manager.read_config(resolved)
        settings = data_manager.parse_settings(parser, base_path=resolved.parent)
    return create_data_files(
        settings.users_file,
        settings.inventory_file,
        catalog=settings.catalog,
        overwrite=overwrite,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize inventory data files")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to configuration file (default: {CONFIG_FILE_NAME} when present)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the data files if they already exist.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    config_path = data_manager.find_config_file(Path(args.config) if args.config else None)

    print("--- Inventory Setup Script ---")
    print(f"Using configuration: {config_path if config_path else 'built-in defaults'}")

    try:
        result = run_from_config(config_path, overwrite=args.force)
    except FileNotFoundError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except ValueError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing files if appropriate.")
        return 1
    except OSError as exc:
        print(f"\n[ERROR] Unable to write data files: {exc}")
        return 1

    print(f"\n[SUCCESS] Created '{result.users_file}' and '{result.inventory_file}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
