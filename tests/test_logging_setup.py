# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

from pulsegrid.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_quiets_stores_and_third_party() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("pulsegrid.leases.generator", logging.DEBUG))
    assert not f.filter(_record("pulsegrid.leases.lease_store", logging.INFO))
    assert f.filter(_record("pulsegrid.leases.lease_store", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))


def test_setup_logging_writes_file_and_replaces_handlers(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        setup_logging(log_dir=tmp_path)
        log_file = setup_logging(log_dir=tmp_path)

        assert len(root.handlers) == 2
        logging.getLogger("pulsegrid.checks.check_store").debug("row written")
        for h in root.handlers:
            h.flush()

        assert log_file == tmp_path / "pulsegrid.log"
        assert "row written" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
