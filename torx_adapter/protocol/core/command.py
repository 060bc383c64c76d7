# torx_adapter/protocol/core/command.py
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class Command:
    """One parsed request line: keyword plus its name=value fields."""
    keyword: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def field(self, name: str) -> Optional[str]:
        return self.fields.get(name)
