# src/pulsegrid/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores and services into AppState.
"""

from __future__ import annotations

import logging
import random

from ..checks.check_store import CheckStore
from ..checks.ingestion import CheckIngestion
from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..directory.directory_store import DirectoryStore
from ..leases.completion import CompletionRecorder
from ..leases.generator import AssignmentGenerator, GeneratorPolicy
from ..leases.lease_store import LeaseStore
from ..leases.scheduler import Scheduler

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    db_path = settings.db_path
    directory = DirectoryStore(db_path, clock=clock)
    lease_store = LeaseStore(db_path, clock=clock)
    check_store = CheckStore(db_path, clock=clock)

    seed = getattr(settings, "shuffle_seed", None)
    rng = random.Random(seed) if seed is not None else random.Random()

    generator = AssignmentGenerator(
        directory,
        directory,
        lease_store,
        policy=GeneratorPolicy.from_settings(settings),
        clock=clock,
        rng=rng,
    )
    completion = CompletionRecorder(lease_store)
    ingestion = CheckIngestion(directory, directory, check_store, completion)
    scheduler = Scheduler(
        generator,
        interval_seconds=float(getattr(settings, "interval_seconds", 300.0)),
        clock=clock,
    )

    return AppState(
        settings=settings,
        directory=directory,
        lease_store=lease_store,
        check_store=check_store,
        generator=generator,
        completion=completion,
        ingestion=ingestion,
        scheduler=scheduler,
    )
