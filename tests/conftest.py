"""Shared pytest fixtures and test helpers for lineagectl tests."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from lineagectl.genealogy import Genealogy
from lineagectl.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def genealogy() -> Genealogy[str, Any]:
    """Empty genealogy rooted at ``"S"``."""
    return Genealogy("S")


@pytest.fixture
def diamond(genealogy: Genealogy[str, Any]) -> Genealogy[str, Any]:
    """S -> A, S -> B, and C under both A and B."""
    genealogy.create("A", "S")
    genealogy.create("B", "S")
    genealogy.create("C", ["A", "B"])
    return genealogy


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty temp directory with no config env var."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LINEAGECTL_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a TOML script into ``tmp_path`` and return its path."""

    def _write(body: str, name: str = "script.toml") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


# ── Shared test helpers ──────────────────────────────────────────────


class Switch:
    """Arms :class:`FlakyId` comparisons.

    While armed, the first *allow* comparisons still succeed.
    """

    def __init__(self) -> None:
        self.armed = False
        self.allow = 0


@functools.total_ordering
class FlakyId:
    """Identifier whose ordering raises while its switch is armed.

    Hashing and equality always work, so membership checks succeed and only
    the ordered-set updates fail.
    """

    def __init__(self, name: str, switch: Switch) -> None:
        self.name = name
        self.switch = switch

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlakyId):
            return NotImplemented
        return self.name == other.name

    def __lt__(self, other: FlakyId) -> bool:
        if self.switch.armed:
            if self.switch.allow <= 0:
                raise RuntimeError("comparison failed")
            self.switch.allow -= 1
        return self.name < other.name

    def __repr__(self) -> str:
        return f"FlakyId({self.name!r})"


@pytest.fixture
def switch() -> Switch:
    return Switch()


@pytest.fixture
def flaky(switch: Switch) -> Callable[[str], FlakyId]:
    """Factory of FlakyIds sharing the ``switch`` fixture."""
    return functools.partial(FlakyId, switch=switch)


def snapshot(genealogy: Genealogy[Any, Any]) -> dict[Any, tuple[Any, Any]]:
    """Map each id to its (parents, children) tuples."""
    return {record.id: (record.parents, record.children) for record in genealogy.records()}


def assert_consistent(genealogy: Genealogy[Any, Any]) -> None:
    """Check stem, parent-count, and symmetry invariants."""
    stem = genealogy.get_stem_id()
    assert genealogy.exists(stem)
    assert genealogy.get_parents(stem) == []
    for record in genealogy.records():
        if record.id != stem:
            assert record.parents, f"{record.id!r} has no parents"
        for parent_id in record.parents:
            assert record.id in genealogy.get_children(parent_id)
        for child_id in record.children:
            assert record.id in genealogy.get_parents(child_id)


@pytest.fixture
def check() -> Callable[[Genealogy[Any, Any]], None]:
    """Invariant checker."""
    return assert_consistent


@pytest.fixture
def shape() -> Callable[[Genealogy[Any, Any]], dict[Any, Any]]:
    """Structural snapshot helper."""
    return snapshot


@pytest.fixture(autouse=True)
def _telemetry_off() -> Iterator[None]:
    """``--verbose`` turns telemetry on for the whole context; turn it back off."""
    yield
    disable_telemetry()
