"""Rule engine run over the syntax events of one analysis pass.

Rules keep state between events (a keyword rule waits for the keyword token
after its node opens, ``case_default`` tracks open case statements), so a
``Linter`` must not be shared by two passes at the same time. ``ServerState``
hands it out under a lock.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from svls.invariants import require_not_none
from svls.model import EventPhase, RuleViolation, SyntaxEvent
from svls.schema import RuleSettings

logger = logging.getLogger(__name__)


class Rule(ABC):
    name: str = ""
    hint: str = ""

    def reset(self) -> None:
        """Drop any state accumulated during the previous pass."""

    @abstractmethod
    def check(self, event: SyntaxEvent) -> list[RuleViolation]:
        raise NotImplementedError

    def violation(self, event: SyntaxEvent) -> RuleViolation:
        return RuleViolation(
            path=require_not_none(event.path, reason="violation on a node event"),
            begin=require_not_none(event.offset, reason="violation on a node event"),
            length=len(event.text or ""),
            name=self.name,
            hint=self.hint,
        )


class KeywordRule(Rule):
    """Flag the keyword token that opens a forbidden construct."""

    node_kind: str = ""
    keyword_kind: str = ""

    def __init__(self) -> None:
        self._pending = False

    def reset(self) -> None:
        self._pending = False

    def check(self, event: SyntaxEvent) -> list[RuleViolation]:
        if event.phase is not EventPhase.ENTER:
            return []
        if event.kind == self.node_kind and not event.is_token:
            self._pending = True
            return []
        if self._pending and event.is_token and event.kind == self.keyword_kind:
            self._pending = False
            return [self.violation(event)]
        return []


class LegacyAlways(KeywordRule):
    name = "legacy_always"
    hint = "Use `always_comb`/`always_ff` instead of `always`."
    node_kind = "AlwaysBlock"
    keyword_kind = "AlwaysKeyword"


class KeywordForbiddenAlwaysLatch(KeywordRule):
    name = "keyword_forbidden_always_latch"
    hint = "Use `always_ff` or `always_comb` instead of `always_latch`."
    node_kind = "AlwaysLatchBlock"
    keyword_kind = "AlwaysLatchKeyword"


class KeywordForbiddenGenerate(KeywordRule):
    name = "keyword_forbidden_generate"
    hint = "Remove `generate`/`endgenerate` keywords."
    node_kind = "GenerateRegion"
    keyword_kind = "GenerateKeyword"


@dataclass
class _OpenCase:
    keyword: SyntaxEvent | None = None
    has_default: bool = False


class CaseDefault(Rule):
    name = "case_default"
    hint = "Add a `default` item to the `case` statement."

    _CASE_KEYWORDS = frozenset({"CaseKeyword", "CaseZKeyword", "CaseXKeyword"})

    def __init__(self) -> None:
        self._open: list[_OpenCase] = []

    def reset(self) -> None:
        self._open.clear()

    def check(self, event: SyntaxEvent) -> list[RuleViolation]:
        if event.is_token:
            if (
                event.phase is EventPhase.ENTER
                and self._open
                and self._open[-1].keyword is None
                and event.kind in self._CASE_KEYWORDS
            ):
                self._open[-1].keyword = event
            return []
        if event.kind == "CaseStatement":
            if event.phase is EventPhase.ENTER:
                self._open.append(_OpenCase())
                return []
            if not self._open:
                return []
            closed = self._open.pop()
            if closed.has_default or closed.keyword is None:
                return []
            return [self.violation(closed.keyword)]
        if event.kind == "DefaultCaseItem" and event.phase is EventPhase.ENTER:
            if self._open:
                self._open[-1].has_default = True
        return []


RULES: dict[str, type[Rule]] = {
    rule.name: rule
    for rule in (
        LegacyAlways,
        KeywordForbiddenAlwaysLatch,
        KeywordForbiddenGenerate,
        CaseDefault,
    )
}


class Linter:
    def __init__(self, rule_names: Iterable[str]) -> None:
        wanted = set(rule_names)
        for unknown in sorted(wanted - RULES.keys()):
            logger.warning("unknown rule %r ignored", unknown)
        self.rules: list[Rule] = [
            rule_cls() for name, rule_cls in RULES.items() if name in wanted
        ]

    @classmethod
    def enable_all(cls) -> Linter:
        return cls(RULES)

    @classmethod
    def from_settings(cls, settings: RuleSettings) -> Linter:
        return cls(name for name, enabled in settings.rules.items() if enabled)

    @property
    def enabled(self) -> list[str]:
        return [rule.name for rule in self.rules]

    def begin_pass(self) -> None:
        for rule in self.rules:
            rule.reset()

    def check(self, event: SyntaxEvent) -> list[RuleViolation]:
        violations: list[RuleViolation] = []
        for rule in self.rules:
            violations.extend(rule.check(event))
        return violations
