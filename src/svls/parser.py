"""Parse collaborator backed by slang (``pyslang``).

Each pass gets a fresh ``SourceManager``: the editor text is assigned to a
placeholder buffer. Configured defines become preprocessor predefines and the
include directories are handed to the preprocessor through its options.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Mapping, Optional, Sequence

import pyslang

from svls.exceptions import SourceParseError
from svls.model import (
    PRIMARY_BUFFER_PATH,
    BufferLocation,
    EventPhase,
    MacroDefinition,
    ParseFailure,
    SyntaxEvent,
)

# Name given to slang for the unsaved buffer; mapped back to PRIMARY_BUFFER_PATH.
PRIMARY_SOURCE_NAME = "<svls-buffer>"

logger = logging.getLogger(__name__)


def _resolve(source_manager: pyslang.SourceManager, location) -> BufferLocation:
    # Macro expansions point back at the text they were written in.
    if source_manager.isMacroLoc(location):
        location = source_manager.getFullyOriginalLoc(location)
    path = str(source_manager.getFullPath(location.buffer))
    if path == PRIMARY_SOURCE_NAME:
        path = PRIMARY_BUFFER_PATH
    return BufferLocation(path=path, offset=location.offset)


def _buffer_location(
    source_manager: pyslang.SourceManager, location
) -> Optional[BufferLocation]:
    if location == pyslang.SourceLocation.NoLocation:
        return None
    return _resolve(source_manager, location)


class ParsedSource:
    def __init__(
        self, tree: pyslang.SyntaxTree, source_manager: pyslang.SourceManager
    ) -> None:
        self.tree = tree
        self.source_manager = source_manager

    def _token_events(self, token: pyslang.Token) -> Iterator[SyntaxEvent]:
        if token.isMissing:
            return
        location = _resolve(self.source_manager, token.location)
        for phase in (EventPhase.ENTER, EventPhase.LEAVE):
            yield SyntaxEvent(
                phase=phase,
                kind=token.kind.name,
                path=location.path,
                offset=location.offset,
                text=token.rawText,
            )

    def events(self) -> Iterator[SyntaxEvent]:
        """Depth-first ENTER/LEAVE events for every node and token."""
        stack: list[tuple[object, bool]] = [(self.tree.root, False)]
        while stack:
            element, leaving = stack.pop()
            if isinstance(element, pyslang.Token):
                yield from self._token_events(element)
                continue
            kind = element.kind.name
            if leaving:
                yield SyntaxEvent(phase=EventPhase.LEAVE, kind=kind)
                continue
            yield SyntaxEvent(phase=EventPhase.ENTER, kind=kind)
            stack.append((element, True))
            children = [element[index] for index in range(len(element))]
            for child in reversed(children):
                if child is not None:
                    stack.append((child, False))


def _preprocessor_options(
    include_paths: Sequence[Path],
    defines: Mapping[str, Optional[str]],
) -> pyslang.PreprocessorOptions:
    options = pyslang.PreprocessorOptions()
    options.predefines = [
        MacroDefinition(name, value).as_predefine() for name, value in defines.items()
    ]
    options.additionalIncludePaths = [str(path) for path in include_paths]
    return options


def parse_source(
    text: str,
    *,
    include_paths: Sequence[Path],
    defines: Mapping[str, Optional[str]],
) -> ParsedSource:
    """Parse ``text`` as the unsaved primary buffer.

    Raises ``SourceParseError`` carrying the location of the first error
    slang reports, which may lie in an included file.
    """
    source_manager = pyslang.SourceManager()
    options = _preprocessor_options(include_paths, defines)
    tree = pyslang.SyntaxTree.fromText(
        text, source_manager, "source", PRIMARY_SOURCE_NAME, pyslang.Bag([options])
    )
    for diag in tree.diagnostics:
        if diag.isError():
            location = _buffer_location(source_manager, diag.location)
            logger.debug("parse error %s at %s", diag.code, location)
            raise SourceParseError(ParseFailure(location=location))
    return ParsedSource(tree, source_manager)
