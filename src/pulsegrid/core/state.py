# src/pulsegrid/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..checks.check_store import CheckStore
    from ..checks.ingestion import CheckIngestion
    from ..directory.directory_store import DirectoryStore
    from ..leases.completion import CompletionRecorder
    from ..leases.generator import AssignmentGenerator
    from ..leases.lease_store import LeaseStore
    from ..leases.scheduler import Scheduler


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    directory: DirectoryStore
    lease_store: LeaseStore
    check_store: CheckStore

    generator: AssignmentGenerator
    completion: CompletionRecorder
    ingestion: CheckIngestion
    scheduler: Scheduler
