# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "PULSEGRID_APP_NAME": "App display name (default: pulsegrid).",
    "PULSEGRID_LOG_LEVEL": "Console logging level (default: INFO).",
    # Switches
    "PULSEGRID_CONSOLE_ENABLED": "Run the operator console (true/false, default: true).",
    "PULSEGRID_SCHEDULER_ENABLED": "Run the background assignment scheduler (true/false, default: true).",
    # Paths (gitignored)
    "PULSEGRID_DATA_DIR": "Local data directory, also holds pulsegrid.log (default: .local/pulsegrid).",
    "PULSEGRID_DB_PATH": "SQLite database path (default: <data_dir>/pulsegrid.sqlite3).",
    # Assignment cycle
    "PULSEGRID_INTERVAL_SECONDS": "Seconds between scheduled cycles (default: 300).",
    "PULSEGRID_LEASE_MINUTES": "How long a worker holds a lease (default: 10).",
    "PULSEGRID_COOLDOWN_MINUTES": "Minimum gap before re-offering a task to the same worker (default: 30).",
    "PULSEGRID_MAX_PER_WORKER": "Upper bound on leases per worker per cycle (default: 5).",
    # Overlap guard
    "PULSEGRID_GENERATION_GUARD": "Skip a cycle while another one is running (true/false, default: true).",
    "PULSEGRID_GENERATION_GUARD_SECONDS": "TTL of the in-progress marker (default: 120).",
    # Testing
    "PULSEGRID_SHUFFLE_SEED": "Seed for the task shuffle; unset for system randomness.",
}
