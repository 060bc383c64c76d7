# torx_adapter/app/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

ENV_TIMEOUT = "TORXTIMEOUT"
ENV_TIMEUNIT = "TORXTIMEUNIT"


@dataclass(frozen=True)
class AdapterConfig:
    codec_path: str
    driver: str
    transport_params: dict = field(default_factory=dict)
    timeout_ms: int = 1000
    handshake_wait_s: float = 10.0


def resolve_timeout_ms(
    default_ms: int,
    environ: Optional[Mapping[str, str]] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> int:
    """
    Quiescence timeout as configured by the test tool.

    TORXTIMEOUT/TORXTIMEUNIT override default_ms only when both are set and the
    value is an integer. Unit "seconds" scales by 1000; "milliseconds" and any
    other unit are taken as milliseconds.
    """
    log = logger or logging.getLogger(__name__)
    env = os.environ if environ is None else environ

    timeout_ms = int(default_ms)
    value = env.get(ENV_TIMEOUT)
    unit = env.get(ENV_TIMEUNIT)

    if value is not None and unit is not None:
        try:
            parsed = int(value.strip())
        except ValueError:
            log.warning("TIMEOUT_ENV_INVALID %s=%r", ENV_TIMEOUT, value)
        else:
            timeout_ms = parsed * 1000 if unit.strip().lower() == "seconds" else parsed

    log.info("TIMEOUT_RESOLVED ms=%d", timeout_ms)
    return timeout_ms
