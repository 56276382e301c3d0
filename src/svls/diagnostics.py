"""Turn raw parser and rule failures into LSP diagnostics."""

from __future__ import annotations

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from svls.invariants import never
from svls.model import ParseFailure, RawFailure, RuleViolation
from svls.position import line_end, offset_to_line_col

SOURCE = "svls"
PARSE_ERROR_MESSAGE = "parse error"


def _single_line_range(text: str, offset: int, length: int) -> Range:
    line, col = offset_to_line_col(text, offset)
    return Range(
        start=Position(line=line, character=col),
        end=Position(line=line, character=col + length),
    )


def violation_diagnostic(text: str, violation: RuleViolation) -> Diagnostic:
    # Violations are assumed not to span lines.
    return Diagnostic(
        range=_single_line_range(text, violation.begin, violation.length),
        severity=DiagnosticSeverity.Warning,
        code=violation.name,
        source=SOURCE,
        message=violation.hint,
    )


def parse_failure_diagnostic(text: str, offset: int) -> Diagnostic:
    """Error diagnostic running from ``offset`` to the end of its line."""
    length = line_end(text, offset) - offset
    return Diagnostic(
        range=_single_line_range(text, offset, length),
        severity=DiagnosticSeverity.Error,
        source=SOURCE,
        message=PARSE_ERROR_MESSAGE,
    )


def translate(text: str, failure: RawFailure) -> Diagnostic:
    if isinstance(failure, RuleViolation):
        return violation_diagnostic(text, failure)
    if isinstance(failure, ParseFailure) and failure.location is not None:
        return parse_failure_diagnostic(text, failure.location.offset)
    never("untranslatable failure", failure=repr(failure))
