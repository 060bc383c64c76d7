# torx_adapter/core/errors.py
from __future__ import annotations


class AdapterError(Exception):
    """
    Base class for all expected operational errors of the adapter.
    """

    #: Stable identifier, logged with the failure.
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def render(self) -> list[str]:
        """Operator-facing lines for stderr; stdout belongs to the test tool."""
        lines = [f"ERROR: {self.message}"]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {k}: {v}" for k, v in self.details.items())
        return lines


# ---------------------------------------------------------------------------
# Configuration / setup errors (SUT not touched yet)
# ---------------------------------------------------------------------------

class CodecConfigError(AdapterError):
    """
    The label codec file is missing or invalid.

    Examples:
      - file not found
      - YAML syntax error
      - unknown framing, byte value out of range, duplicate key in a mapping
    """
    code = "codec_config_error"


class TransportConfigError(AdapterError):
    """
    The SUT transport cannot be constructed from the given settings.

    Examples:
      - unknown driver key
      - missing / unexpected transport parameters
    """
    code = "transport_config_error"


# ---------------------------------------------------------------------------
# SUT lifecycle errors
# ---------------------------------------------------------------------------

class GatewayStartError(AdapterError):
    """
    The SUT could not be reached when the gateway started.

    Examples:
      - SUT executable not found / not executable
      - serial port missing or busy
    """
    code = "gateway_start_error"
