"""Shared pytest fixtures and utilities for the inventory tests."""

from __future__ import annotations

import sys
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Sequence
from unittest.mock import Mock

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

for candidate in (SRC_DIR, PROJECT_ROOT):
    candidate_str = str(candidate)
    if candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from mohul_inventory import cli, constants, core_logic, data_manager  # noqa: E402
from setup_data import create_data_files  # noqa: E402

_CONFIG_TEMPLATE = (
    "[Files]\n"
    "UsersFile = {users_file}\n"
    "InventoryFile = {inventory_file}\n\n"
    "[Catalog]\n"
    "Products = {products}\n\n"
    "[Stock]\n"
    "LowStockThreshold = {threshold}\n"
)


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    users_file: Path
    inventory_file: Path


@dataclass
class ScriptedConsole:
    """Console double that replays answers and records everything shown."""

    answers: List[str]
    prompts: List[str] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)

    def read(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError("script exhausted")
        return self.answers.pop(0)

    def write(self, message: str) -> None:
        self.lines.append(message)

    @property
    def console(self) -> cli.Console:
        return cli.Console(read=self.read, write=self.write)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture
def data_files_factory(tmp_path: Path) -> Callable[..., tuple[Path, Path]]:
    """Factory that creates initialized data files in a temp folder."""

    def _create(
        *,
        subdir: str | None = None,
        catalog: Sequence[str] = constants.DEFAULT_CATALOG,
    ) -> tuple[Path, Path]:
        base_dir = tmp_path if subdir is None else tmp_path / subdir
        base_dir.mkdir(parents=True, exist_ok=True)
        result = create_data_files(
            base_dir / constants.DEFAULT_USERS_FILE,
            base_dir / constants.DEFAULT_INVENTORY_FILE,
            catalog=catalog,
            overwrite=True,
        )
        return result.users_file, result.inventory_file

    return _create


@pytest.fixture
def config_factory(tmp_path: Path, data_files_factory: Callable[..., tuple[Path, Path]]) -> Callable[..., ConfigBundle]:
    """Provide a callable that creates config/data-file bundles on demand."""

    def _create_config(
        *,
        make_relative: bool = False,
        catalog: Sequence[str] = constants.DEFAULT_CATALOG,
        threshold: int = constants.LOW_STOCK_THRESHOLD,
    ) -> ConfigBundle:
        bundle_dir_name = f"bundle_{uuid.uuid4().hex}"
        users_file, inventory_file = data_files_factory(subdir=bundle_dir_name, catalog=catalog)
        bundle_dir = tmp_path / bundle_dir_name
        config_path = bundle_dir / constants.CONFIG_FILE_NAME
        config_path.write_text(
            _CONFIG_TEMPLATE.format(
                users_file=users_file.name if make_relative else users_file,
                inventory_file=inventory_file.name if make_relative else inventory_file,
                products=", ".join(catalog),
                threshold=threshold,
            ),
            encoding="utf-8",
        )
        return ConfigBundle(
            directory=bundle_dir,
            config_path=config_path,
            users_file=users_file,
            inventory_file=inventory_file,
        )

    return _create_config


@pytest.fixture
def config_bundle(config_factory: Callable[..., ConfigBundle]) -> ConfigBundle:
    return config_factory()


@pytest.fixture
def runtime_context(config_bundle: ConfigBundle) -> core_logic.RuntimeContext:
    """Load the runtime context and both stores through the public API."""

    context = core_logic.load_runtime_context(config_bundle.config_path)
    assert core_logic.load_stores(context) == []
    return context


@pytest.fixture
def settings(tmp_path: Path) -> data_manager.ConfigSettings:
    """Provide default settings pointing into the temp folder."""

    return data_manager.ConfigSettings(
        users_file=tmp_path / constants.DEFAULT_USERS_FILE,
        inventory_file=tmp_path / constants.DEFAULT_INVENTORY_FILE,
    )


@pytest.fixture
def account_repository() -> Mock:
    """Return a mock account repository that starts out empty."""

    repository = Mock(name="account_repository")
    repository.load.return_value = iter([])
    repository.save.side_effect = lambda records: len(list(records))
    return repository


@pytest.fixture
def stock_repository() -> Mock:
    """Return a mock stock repository that starts out empty."""

    repository = Mock(name="stock_repository")
    repository.load.return_value = iter([])
    repository.save.side_effect = lambda records: len(list(records))
    return repository


@pytest.fixture
def console_factory() -> Callable[[Iterable[str]], ScriptedConsole]:
    """Build scripted consoles from a sequence of operator answers."""

    def _create(answers: Iterable[str]) -> ScriptedConsole:
        return ScriptedConsole(answers=list(answers))

    return _create
