from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Path reported for the unsaved editor buffer. Anything else is an included file.
PRIMARY_BUFFER_PATH = ""


@dataclass(frozen=True)
class BufferLocation:
    path: str
    offset: int

    @property
    def in_primary_buffer(self) -> bool:
        return self.path == PRIMARY_BUFFER_PATH


@dataclass(frozen=True)
class ParseFailure:
    location: Optional[BufferLocation] = None


@dataclass(frozen=True)
class RuleViolation:
    path: str
    begin: int
    length: int
    name: str
    hint: str

    @property
    def in_primary_buffer(self) -> bool:
        return self.path == PRIMARY_BUFFER_PATH


RawFailure = Union[ParseFailure, RuleViolation]


@dataclass(frozen=True)
class MacroDefinition:
    name: str
    value: Optional[str] = None

    def as_predefine(self) -> str:
        if self.value is None:
            return self.name
        return f"{self.name}={self.value}"


class EventPhase(Enum):
    ENTER = "enter"
    LEAVE = "leave"


@dataclass(frozen=True)
class SyntaxEvent:
    """One step of a depth-first walk over the syntax tree.

    ``kind`` is the slang syntax or token kind name. ``path``, ``offset`` and
    ``text`` are only set for tokens.
    """

    phase: EventPhase
    kind: str
    path: Optional[str] = None
    offset: Optional[int] = None
    text: Optional[str] = None

    @property
    def is_token(self) -> bool:
        return self.text is not None
