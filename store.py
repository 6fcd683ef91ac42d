"""In-memory store of calculator sessions.

Each session is one Calculator.  Key presses go through the store, which
serializes them per store (the HTTP layer runs sync endpoints on a
thread pool) and checks the state contract after every press.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from calculator import Calculator
from contract import ValidationReport, validate_state
from models import SessionView, _new_id

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class StateInvariantError(Exception):
    """Raised when a calculator state breaks the contract."""

    def __init__(self, session_id: str, report: ValidationReport) -> None:
        self.session_id = session_id
        self.report = report
        super().__init__(f"Session {session_id}: {report.summary()}")


class SessionStore:
    """In-memory store of calculator sessions."""

    def __init__(self, factory: Callable[[], Calculator] = Calculator) -> None:
        self._factory = factory
        self._sessions: dict[str, Calculator] = {}
        self._lock = threading.Lock()

    # -- helpers -------------------------------------------------------------

    def _get(self, session_id: str) -> Calculator:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    @staticmethod
    def _view(session_id: str, calc: Calculator) -> SessionView:
        return SessionView(id=session_id, **calc.view().model_dump())

    def _validate_or_raise(self, session_id: str, calc: Calculator) -> None:
        report = validate_state(calc.state)
        if not report.passed:
            logger.error("State contract broken for %s:\n%s", session_id, report.summary())
            raise StateInvariantError(session_id, report)

    # -- operations ----------------------------------------------------------

    def create(self, calculator: Calculator | None = None) -> SessionView:
        """Open a new session, optionally around an existing calculator."""
        session_id = _new_id()
        calc = calculator if calculator is not None else self._factory()
        with self._lock:
            self._sessions[session_id] = calc
        logger.info("Created session %s", session_id)
        return self._view(session_id, calc)

    def get(self, session_id: str) -> SessionView:
        with self._lock:
            return self._view(session_id, self._get(session_id))

    def press(self, session_id: str, key: str) -> SessionView:
        """Press one key on a session's calculator."""
        with self._lock:
            calc = self._get(session_id)
            calc.press(key)
            self._validate_or_raise(session_id, calc)
            return self._view(session_id, calc)

    def delete(self, session_id: str) -> SessionView:
        """Close a session and return its last view."""
        with self._lock:
            calc = self._get(session_id)
            del self._sessions[session_id]
        logger.info("Deleted session %s", session_id)
        return self._view(session_id, calc)

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions (useful for testing)."""
        with self._lock:
            self._sessions.clear()
