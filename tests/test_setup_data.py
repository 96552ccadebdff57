"""Tests for the data file bootstrap script."""

from __future__ import annotations

import pytest

from setup_data import create_data_files, main, run_from_config


def test_create_data_files_seeds_catalog_at_zero(tmp_path):
    result = create_data_files(tmp_path / "users.txt", tmp_path / "inventory.txt")

    assert result.users_file.read_text(encoding="utf-8") == ""
    assert result.inventory_file.read_text(encoding="utf-8") == "Hair Oil,0\nHair Pack,0\nHair Spray,0\n"


def test_create_data_files_refuses_to_overwrite(tmp_path):
    users = tmp_path / "users.txt"
    users.write_text("Alice,A1,Owner,pw\n", encoding="utf-8")

    with pytest.raises(FileExistsError):
        create_data_files(users, tmp_path / "inventory.txt")

    assert users.read_text(encoding="utf-8") == "Alice,A1,Owner,pw\n"
    assert not (tmp_path / "inventory.txt").exists()


def test_create_data_files_overwrite(tmp_path):
    users = tmp_path / "users.txt"
    users.write_text("Alice,A1,Owner,pw\n", encoding="utf-8")

    create_data_files(users, tmp_path / "inventory.txt", catalog=["Soap"], overwrite=True)

    assert users.read_text(encoding="utf-8") == ""
    assert (tmp_path / "inventory.txt").read_text(encoding="utf-8") == "Soap,0\n"


def test_run_from_config_uses_configured_paths(config_factory):
    bundle = config_factory(make_relative=True, catalog=("Soap", "Shampoo"))

    result = run_from_config(bundle.config_path, overwrite=True)

    assert result.inventory_file == (bundle.directory / "inventory.txt").resolve()
    assert result.inventory_file.read_text(encoding="utf-8") == "Soap,0\nShampoo,0\n"


def test_main_uses_defaults_in_working_directory(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    assert main([]) == 0
    assert (tmp_path / "inventory.txt").exists()
    assert "[SUCCESS]" in capsys.readouterr().out

    assert main([]) == 1
    assert "--force" in capsys.readouterr().out

    assert main(["--force"]) == 0
