from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from lsprotocol.types import Diagnostic

from svls.diagnostics import translate
from svls.exceptions import SourceParseError
from svls.model import MacroDefinition, RawFailure, RuleViolation
from svls.parser import ParsedSource, parse_source
from svls.state import ServerState

logger = logging.getLogger(__name__)

ParseFn = Callable[..., ParsedSource]

_QUOTES = ('"', "'")
_SIMPLE_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}


def unescape_literal(value: str) -> str:
    """Decode a quoted literal such as ``"a\\tb"``.

    Matching surrounding quotes are dropped. Raises ``ValueError`` on an
    unknown escape, a trailing backslash or a malformed ``\\u{...}``.
    """
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        value = value[1:-1]
    out: list[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue
        if index + 1 >= len(value):
            raise ValueError("dangling backslash")
        escape = value[index + 1]
        if escape in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[escape])
            index += 2
            continue
        if escape == "u":
            close = value.find("}", index)
            if index + 2 >= len(value) or value[index + 2] != "{" or close < 0:
                raise ValueError("malformed unicode escape")
            try:
                out.append(chr(int(value[index + 3 : close], 16)))
            except ValueError as exc:
                raise ValueError("malformed unicode escape") from exc
            index = close + 1
            continue
        raise ValueError(f"unknown escape \\{escape}")
    return "".join(out)


def parse_define(entry: str) -> MacroDefinition:
    name, sep, raw = entry.partition("=")
    if not sep:
        return MacroDefinition(name)
    try:
        return MacroDefinition(name, unescape_literal(raw))
    except ValueError:
        logger.debug("dropping value of define %r: invalid escape", entry)
        return MacroDefinition(name)


def build_defines(entries: Iterable[str]) -> dict[str, Optional[str]]:
    defines: dict[str, Optional[str]] = {}
    for entry in entries:
        define = parse_define(entry)
        defines[define.name] = define.value
    return defines


def resolve_include_paths(root: Path, include_paths: Sequence[str]) -> list[Path]:
    return [root / path for path in include_paths]


def _rule_violations(parsed: ParsedSource, state: ServerState) -> list[RuleViolation]:
    violations: list[RuleViolation] = []
    with state.borrow_engine() as engine:
        if engine is None:
            return violations
        engine.begin_pass()
        for event in parsed.events():
            for violation in engine.check(event):
                logger.debug("%s", violation)
                if violation.in_primary_buffer:
                    violations.append(violation)
    return violations


def analyze(
    text: str,
    state: ServerState,
    *,
    parse: ParseFn = parse_source,
) -> list[Diagnostic]:
    """Run one full parse + lint pass over ``text``."""
    snapshot = state.snapshot()
    if snapshot is None:
        logger.debug("analysis requested before initialize")
        return []

    verilog = snapshot.configuration.verilog
    include_paths = resolve_include_paths(snapshot.root, verilog.include_paths)
    defines = build_defines(verilog.defines)
    logger.debug("include_paths: %s", include_paths)
    logger.debug("defines: %s", defines)

    failures: list[RawFailure] = []
    try:
        parsed = parse(text, include_paths=include_paths, defines=defines)
    except SourceParseError as exc:
        location = exc.failure.location
        logger.debug("parse_error: %s", location)
        if location is not None and location.in_primary_buffer:
            failures.append(exc.failure)
    else:
        failures.extend(_rule_violations(parsed, state))
    return [translate(text, failure) for failure in failures]

