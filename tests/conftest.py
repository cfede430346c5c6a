# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from pulsegrid.cli.bootstrap import create_initial_state
from pulsegrid.core.state import AppState

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="pulsegrid-test",
        log_level="DEBUG",
        console_enabled=False,
        scheduler_enabled=False,
        data_dir=tmp_path,
        db_path=tmp_path / "pulsegrid.sqlite3",
        interval_seconds=300.0,
        lease_minutes=10,
        cooldown_minutes=30,
        max_per_worker=5,
        generation_guard=True,
        generation_guard_seconds=120.0,
        shuffle_seed=1234,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> AppState:
    """
    AppState wired with a fake clock.

    NOTE: We keep real SQLite stores here because their correctness is part
    of what we want to test.
    """
    return create_initial_state(settings=settings, clock=clock)
