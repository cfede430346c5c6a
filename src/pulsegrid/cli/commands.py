# src/pulsegrid/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..checks.check_api import worker_performance, worker_stats
from ..core.state import AppState
from ..directory.directory_models import WorkerRole, is_eligible
from ..errors import StoreError, ValidationError
from ..leases.lease_api import assignment_stats, open_leases_for_worker

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /run, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _parse_id(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    sched = state.scheduler
    last = sched.last_result.as_dict() if sched.last_result else "-"
    return (
        "Status:\n"
        f"  Database: {getattr(s, 'db_path', '?')}\n"
        f"  Scheduler: {'running' if sched.running else 'stopped'}"
        f" (every {sched.interval_seconds:.0f}s, {sched.cycles_run} cycles)\n"
        f"  Last run: {_fmt_ts(sched.last_run_at)} -> {last}\n"
        f"  Lease: {getattr(s, 'lease_minutes', 10)}m, cooldown: {getattr(s, 'cooldown_minutes', 30)}m,"
        f" max per worker: {getattr(s, 'max_per_worker', 5)}"
    )


def cmd_run(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("[RUN] Generating assignments...")
    result = state.scheduler.trigger_once()
    if result.success:
        return (
            f"Created {result.assignments_created} assignments "
            f"for {result.workers_involved} workers."
        )
    return f"Cycle failed: {result.reason}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    st = assignment_stats(state)
    return (
        "Assignments:\n"
        f"  total: {st.total}\n"
        f"  active: {st.active}\n"
        f"  completed: {st.completed}\n"
        f"  expired: {st.expired}"
    )


def cmd_leases(state: AppState, args: list[str]) -> str:
    """
    /leases <worker_id>  -> open leases the worker may work on now
    """
    worker_id = _parse_id(args[0]) if args else None
    if worker_id is None:
        return "Usage: /leases <worker_id>"

    leases = open_leases_for_worker(state, worker_id)
    if not leases:
        return f"No open leases for worker {worker_id}."
    lines = [f"Open leases for worker {worker_id}:"]
    for i, lease in enumerate(leases, start=1):
        label = f"{lease.name} ({lease.url})" if lease.name else lease.url
        lines.append(
            f"{i}. task {lease.task_id}: {label}, assigned {_fmt_ts(lease.assigned_at)},"
            f" expires {_fmt_ts(lease.expires_at)}"
        )
    return "\n".join(lines)


def cmd_task(state: AppState, args: list[str]) -> str:
    """
    /task add <owner_id> <url> [name]
    /task list
    """
    usage = "Usage: /task add <owner_id> <url> [name] | /task list"
    if not args:
        return usage

    sub = args[0].lower()
    if sub == "list":
        tasks = state.directory.list_all()
        if not tasks:
            return "No tasks."
        lines = ["Tasks:"]
        for t in tasks:
            lines.append(f"  {t.id}. {t.url}" + (f" ({t.name})" if t.name else "") + f" owner={t.owner_id}")
        return "\n".join(lines)

    if sub == "add" and len(args) >= 3:
        owner_id = _parse_id(args[1])
        if owner_id is None:
            return usage
        name = " ".join(args[3:]) or None
        task_id = state.directory.add_task(owner_id=owner_id, url=args[2], name=name)
        return f"Task {task_id} added."

    return usage


def cmd_worker(state: AppState, args: list[str]) -> str:
    """
    /worker add <username> <worker|owner> [identity]
    /worker list
    """
    usage = "Usage: /worker add <username> <worker|owner> [identity] | /worker list"
    if not args:
        return usage

    sub = args[0].lower()
    if sub == "list":
        workers = state.directory.list_workers()
        if not workers:
            return "No workers."
        lines = ["Workers:"]
        for w in workers:
            flag = "eligible" if is_eligible(w) else "not eligible"
            lines.append(f"  {w.id}. {w.username} [{w.role.value}] identity={w.identity or '-'} ({flag})")
        return "\n".join(lines)

    if sub == "add" and len(args) >= 3:
        try:
            role = WorkerRole(args[2].lower())
        except ValueError:
            return usage
        identity = args[3] if len(args) >= 4 else None
        worker_id = state.directory.add_worker(username=args[1], role=role, identity=identity)
        return f"Worker {worker_id} added."

    return usage


def cmd_check(state: AppState, args: list[str]) -> str:
    """
    /check <task_id> <identity> <up|down> <latency_ms> <proof>

    Timestamp is the store clock's now. For manual testing of the ingestion path.
    """
    if len(args) < 5:
        return "Usage: /check <task_id> <identity> <up|down> <latency_ms> <proof>"

    try:
        latency = float(args[3])
    except ValueError:
        return "latency_ms must be a number."

    try:
        check = state.ingestion.submit(
            task_id=args[0],
            worker_identity=args[1],
            status=args[2],
            latency=latency,
            timestamp=state.check_store.now(),
            origin_proof=args[4],
        )
    except ValidationError as e:
        return f"Rejected: {e}"
    except StoreError:
        logger.exception("Check submission failed.")
        return "Failed to submit check."

    return f"Check {check.id} stored: task {check.task_id} {check.status.value} {check.latency_ms:.0f}ms."


def cmd_wstats(state: AppState, args: list[str]) -> str:
    """
    /wstats <worker_id>        -> check counts for a worker
    /wstats owner <owner_id>   -> per-worker performance on the owner's tasks
    """
    if len(args) >= 2 and args[0].lower() == "owner":
        owner_id = _parse_id(args[1])
        if owner_id is None:
            return "Usage: /wstats owner <owner_id>"
        perf = worker_performance(state, owner_id)
        if not perf:
            return f"No checks recorded on tasks of owner {owner_id}."
        lines = [f"Worker performance on tasks of owner {owner_id}:"]
        for p in perf:
            lines.append(
                f"  {p.username}: {p.total_checks} checks, {p.up_percent}% up,"
                f" avg {p.avg_latency_ms}ms, last {_fmt_ts(p.last_check_at)}"
            )
        return "\n".join(lines)

    worker_id = _parse_id(args[0]) if args else None
    if worker_id is None:
        return "Usage: /wstats <worker_id> | /wstats owner <owner_id>"
    ws = worker_stats(state, worker_id)
    return f"Worker {worker_id}: {ws.total_checks} checks total, {ws.checks_today} today."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show scheduler status and cycle settings.")
registry.register("run", cmd_run, help_text="Run one assignment cycle now.")
registry.register("stats", cmd_stats, help_text="Assignment counts: total/active/completed/expired.")
registry.register("leases", cmd_leases, help_text="Open leases for a worker: /leases <worker_id>.")
registry.register("task", cmd_task, help_text="Task catalog: /task add <owner_id> <url> [name] | /task list.")
registry.register(
    "worker",
    cmd_worker,
    help_text="Worker registry: /worker add <username> <worker|owner> [identity] | /worker list.",
)
registry.register(
    "check", cmd_check, help_text="Submit a check: /check <task_id> <identity> <up|down> <latency_ms> <proof>."
)
registry.register(
    "wstats", cmd_wstats, help_text="Worker stats: /wstats <worker_id> | /wstats owner <owner_id>."
)
