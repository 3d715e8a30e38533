"""Unit coverage for the project version helper."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

import pytest

from bruttonetto.backend import version
from bruttonetto.backend.version import get_project_version, read_pyproject_version

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


@pytest.fixture(autouse=True)
def _clear_version_cache():
    get_project_version.cache_clear()
    yield
    get_project_version.cache_clear()


def test_pyproject_path_points_at_repository_root() -> None:
    assert version.PYPROJECT_PATH == PYPROJECT


def test_read_pyproject_version_matches_project_table() -> None:
    assert read_pyproject_version(PYPROJECT) == "1.0.0"


def test_get_project_version_prefers_installed_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(metadata, "version", lambda package: "9.9.9")

    assert get_project_version() == "9.9.9"


def test_get_project_version_falls_back_to_pyproject(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise(_: str) -> str:
        raise metadata.PackageNotFoundError

    monkeypatch.setattr(metadata, "version", _raise)

    assert get_project_version() == read_pyproject_version(PYPROJECT)


def test_read_pyproject_version_ignores_other_tables(tmp_path: Path) -> None:
    path = tmp_path / "pyproject.toml"
    path.write_text(
        '[tool.other]\nversion = "0.0.1"\n\n[project]\nname = "x"\nversion = "2.3.4"\n',
        encoding="utf-8",
    )

    assert read_pyproject_version(path) == "2.3.4"


def test_read_pyproject_version_errors_without_version(tmp_path: Path) -> None:
    path = tmp_path / "pyproject.toml"
    path.write_text('[project]\nname = "x"\n', encoding="utf-8")

    with pytest.raises(RuntimeError):
        read_pyproject_version(path)

    with pytest.raises(RuntimeError):
        read_pyproject_version(tmp_path / "absent.toml")
