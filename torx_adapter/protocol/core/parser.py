# torx_adapter/protocol/core/parser.py
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Protocol as TypingProtocol, Tuple

from .command import Command
from .defs import Keyword


class LineSource(TypingProtocol):
    """Minimal text input interface for CommandParser."""
    def readline(self) -> str: ...


_SEPARATOR = re.compile(r"[ \t]+")


class CommandParser:
    """
    Turns protocol lines into Commands.

    A line matches keyword K if it equals K or starts with K followed by a space
    or TAB. The first whitespace run after K separates it from the fields; the
    fields themselves are TAB separated, so values may contain spaces.
    """

    def __init__(
        self,
        keywords: Iterable[str] = tuple(k.value for k in Keyword),
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.keywords: Tuple[str, ...] = tuple(str(k) for k in keywords)
        self._log = logger or logging.getLogger(__name__)

    def parse(self, line: str) -> Optional[Command]:
        text = line.rstrip("\r\n")
        for kw in self.keywords:
            if text == kw:
                return Command(kw)
            if not text.startswith(kw):
                continue
            rest = text[len(kw):]
            if rest[:1] not in (" ", "\t"):
                continue

            rest = _SEPARATOR.sub("", rest, count=1)
            fields = {}
            for token in rest.split("\t"):
                name, sep, value = token.partition("=")
                if sep:
                    fields[name] = value
            return Command(kw, fields)
        return None

    def read_command(self, stream: LineSource) -> Optional[Command]:
        """
        Block until a recognised command is read.
        Returns None on end-of-input or when the stream fails.
        """
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError):
                self._log.exception("COMMAND_READ_FAILED")
                return None

            if not line:
                self._log.info("COMMAND_INPUT_EOF")
                return None

            if not line.strip():
                continue

            cmd = self.parse(line)
            if cmd is None:
                self._log.warning("COMMAND_UNRECOGNISED line=%r", line.rstrip("\r\n"))
                continue

            self._log.debug("COMMAND_READ kw=%s fields=%s", cmd.keyword, dict(cmd.fields))
            return cmd
