# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from pulsegrid.config import Settings
from pulsegrid.leases.generator import GeneratorPolicy


def test_defaults_match_cycle_constants(monkeypatch) -> None:
    for key in (
        "PULSEGRID_INTERVAL_SECONDS",
        "PULSEGRID_LEASE_MINUTES",
        "PULSEGRID_COOLDOWN_MINUTES",
        "PULSEGRID_MAX_PER_WORKER",
        "PULSEGRID_SHUFFLE_SEED",
        "PULSEGRID_DATA_DIR",
        "PULSEGRID_DB_PATH",
    ):
        monkeypatch.delenv(key, raising=False)

    s = Settings.from_env()

    assert s.interval_seconds == 300.0
    assert s.lease_minutes == 10
    assert s.cooldown_minutes == 30
    assert s.max_per_worker == 5
    assert s.shuffle_seed is None
    assert s.db_path == Path(".local/pulsegrid") / "pulsegrid.sqlite3"


def test_env_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PULSEGRID_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PULSEGRID_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("PULSEGRID_MAX_PER_WORKER", "3")
    monkeypatch.setenv("PULSEGRID_GENERATION_GUARD", "off")
    monkeypatch.setenv("PULSEGRID_SHUFFLE_SEED", "42")
    monkeypatch.setenv("PULSEGRID_LEASE_MINUTES", "not-a-number")

    s = Settings.from_env()

    assert s.db_path == tmp_path / "pulsegrid.sqlite3"
    assert s.interval_seconds == 60.0
    assert s.max_per_worker == 3
    assert s.generation_guard is False
    assert s.shuffle_seed == 42
    assert s.lease_minutes == 10

    policy = GeneratorPolicy.from_settings(s)
    assert policy.max_per_worker == 3
    assert policy.lease_seconds == 600.0
    assert policy.use_generation_guard is False
