# torx_adapter/model/loader.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .codec import FRAMINGS, LabelCodec


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects repeated mapping keys (0x01 and 1 are the same key)."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


class CodecLoader:
    """
    Loads a label codec from YAML.

    Layout:
        framing: byte | line
        encoding: utf-8          # line framing only
        passthrough: false       # line framing only
        stimuli:      {label: wire value}
        observations: {wire value: label}

    Byte framing takes integers 0..255 as wire values, line framing takes strings.
    Repeated keys are rejected instead of silently overwritten.
    After load(), self.file_hash holds the sha256 of the file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.file_hash: Optional[str] = None

    def _load_yaml(self) -> dict:
        if not self.path.exists():
            raise FileNotFoundError(f"Missing codec file: {self.path}")

        raw = self.path.read_bytes()
        self.file_hash = hashlib.sha256(raw).hexdigest()
        data = yaml.load(raw.decode("utf-8"), Loader=_UniqueKeyLoader) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path.name}: top level must be a mapping")
        return data

    def load(self) -> LabelCodec:
        data = self._load_yaml()

        framing = str(data.get("framing", "byte")).lower()
        if framing not in FRAMINGS:
            raise ValueError(f"{self.path.name}: unknown framing '{framing}'")
        encoding = str(data.get("encoding", "utf-8"))

        stimuli: Dict[str, bytes] = {}
        for label, value in (data.get("stimuli") or {}).items():
            stimuli[self._label(label, "stimuli")] = self._wire(value, framing, encoding, "stimuli")

        observations: Dict[bytes, str] = {}
        for value, label in (data.get("observations") or {}).items():
            observations[self._wire(value, framing, encoding, "observations")] = self._label(label, "observations")

        return LabelCodec(
            framing,
            stimuli,
            observations,
            encoding=encoding,
            passthrough=bool(data.get("passthrough", False)),
        )

    def _label(self, label: Any, section: str) -> str:
        if not isinstance(label, str) or not label:
            raise ValueError(f"{self.path.name}: {section} labels must be non-empty strings, got {label!r}")
        if "\t" in label or "\n" in label:
            raise ValueError(f"{self.path.name}: {section} label {label!r} contains TAB or newline")
        return label

    def _wire(self, value: Any, framing: str, encoding: str, section: str) -> bytes:
        if framing == "byte":
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
                raise ValueError(f"{self.path.name}: {section} byte value {value!r} not in 0..255")
            return bytes([value])

        if not isinstance(value, str) or not value or "\n" in value:
            raise ValueError(f"{self.path.name}: {section} line value {value!r} must be a single-line string")
        return value.encode(encoding)
