# torx_adapter/protocol/errors.py

class ProtocolError(Exception):
    """Base for protocol-level failures (command semantics)."""

class UnhandledCommand(ProtocolError):
    def __init__(self, keyword: str):
        super().__init__(f"no handler for command {keyword!r}")
        self.keyword = keyword
