"""
Whitelisted finite state machine used by the round engine.

Transitions are only allowed along the configured edges. Requesting a move to
the current state succeeds without doing anything, and an illegal request is
ignored. Callers check `can()` before any side effect that depends on the move.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class StateMachine:
    """Small FSM with post-transition observers."""

    def __init__(self, initial, allowed: Dict[object, Iterable[object]]):
        self._state = initial
        self._allowed = {state: tuple(targets) for state, targets in allowed.items()}
        self._observers: List[Callable] = []

    @property
    def state(self):
        return self._state

    def can(self, next_state) -> bool:
        if next_state == self._state:
            return True
        return next_state in self._allowed.get(self._state, ())

    def set(self, next_state) -> bool:
        """
        Moves to `next_state` if the edge is whitelisted.

        Returns:
            bool: True when the machine is in `next_state` afterwards.
        """
        if not self.can(next_state):
            logger.debug(f"Ignoring illegal transition {self._state} -> {next_state}")
            return False
        if next_state == self._state:
            return True
        previous = self._state
        self._state = next_state
        for observer in list(self._observers):
            observer(previous, next_state)
        return True

    def subscribe(self, observer: Callable) -> Callable:
        """Registers `observer(previous, current)`; returns an unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def allowed_from(self, state: Optional[object] = None):
        return self._allowed.get(self._state if state is None else state, ())
