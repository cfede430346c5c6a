# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for everything else. Only the names below are read.
"""

# Example: run the operator console without the background scheduler
# SCHEDULER_ENABLED = False

# Example: headless run (scheduler only, stop with Ctrl+C)
# CONSOLE_ENABLED = False

# Example: tighter cycle while testing locally
# INTERVAL_SECONDS = 30
