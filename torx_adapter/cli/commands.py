# torx_adapter/cli/commands.py
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from torx_adapter.app.config import AdapterConfig
from torx_adapter.app.runner import run_adapter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Logging ----------------

def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Diagnostics go to stderr (stdout carries the protocol), plus an optional file.
    Idempotent per target.
    """
    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(getattr(h, "_torx_stderr", False) for h in root.handlers):
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(formatter)
        sh._torx_stderr = True  # type: ignore[attr-defined]
        root.addHandler(sh)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        target = str(log_file.resolve())
        if not any(
            isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target
            for h in root.handlers
        ):
            fh = logging.FileHandler(log_file, encoding="utf-8", delay=True)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    root.setLevel(getattr(logging, level.upper(), logging.INFO))


# ---------------- Commands ----------------

def cmd_run(cfg: AdapterConfig) -> int:
    log = logging.getLogger(__name__)
    log.info("ADAPTER_START driver=%s codec=%s", cfg.driver, cfg.codec_path)
    try:
        run_adapter(
            cfg,
            input_stream=sys.stdin,
            output_stream=sys.stdout,
            owns_streams=True,
        )
    except KeyboardInterrupt:
        log.warning("ADAPTER_INTERRUPTED")
        return 130
    log.info("ADAPTER_DONE")
    return 0
