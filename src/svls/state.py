"""Shared server record: project root, configuration and rule engine.

The record is written once, on ``initialize``. Afterwards readers take a
snapshot of root and configuration, and an analysis pass borrows the engine
exclusively for its whole rule-checking step.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from svls.invariants import never
from svls.rules import Linter
from svls.schema import ServerConfiguration


class ServerPhase(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"


@dataclass(frozen=True)
class StateSnapshot:
    root: Path
    configuration: ServerConfiguration


class ServerState:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._engine_lock = threading.Lock()
        self._phase = ServerPhase.UNINITIALIZED
        self._root = Path("")
        self._configuration: Optional[ServerConfiguration] = None
        self._engine: Optional[Linter] = None

    @property
    def phase(self) -> ServerPhase:
        with self._lock:
            return self._phase

    def initialize(
        self,
        root: Path,
        configuration: ServerConfiguration,
        engine: Optional[Linter],
    ) -> None:
        with self._lock:
            if self._phase is not ServerPhase.UNINITIALIZED:
                never("server state initialized twice", phase=self._phase.value)
            self._root = root
            self._configuration = configuration
            self._engine = engine
            self._phase = ServerPhase.INITIALIZED

    def shutdown(self) -> None:
        with self._lock:
            self._phase = ServerPhase.SHUTTING_DOWN

    def snapshot(self) -> Optional[StateSnapshot]:
        """Root and configuration, or ``None`` before initialization."""
        with self._lock:
            if self._configuration is None:
                return None
            return StateSnapshot(
                root=self._root,
                configuration=self._configuration,
            )

    @contextmanager
    def borrow_engine(self) -> Iterator[Optional[Linter]]:
        """Hold the engine exclusively; yields ``None`` when linting is off."""
        with self._engine_lock:
            with self._lock:
                engine = self._engine
            yield engine
