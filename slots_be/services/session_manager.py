"""
In-memory registry of slot sessions for the HTTP host.

Each session gets its own `RoundEngine` and `RecordingPresenter` so that the
presentation events of a spin can be returned with the response. All engines
share one math model and one RNG stream.
"""
import logging
import threading
import uuid
from contextlib import contextmanager

from slots_be.exceptions import RoundInProgressException, SessionNotFoundException

from .presenter import RecordingPresenter
from .round_engine import RoundEngine

logger = logging.getLogger(__name__)


class SessionHandle:
    """Session record bundled with its engine, presenter and request lock."""

    def __init__(self, session, engine, presenter):
        self.session = session
        self.engine = engine
        self.presenter = presenter
        self.lock = threading.Lock()


class SessionManager:
    def __init__(self, math_spec, rng, settle_delay=0.35, auto_spin_delay=0.35, sleep=None):
        self.math_spec = math_spec
        self.rng = rng
        self.settle_delay = settle_delay
        self.auto_spin_delay = auto_spin_delay
        self.sleep = sleep
        self._handles = {}
        self._registry_lock = threading.Lock()

    def create(self, balance, bet=None):
        presenter = RecordingPresenter()
        engine_kwargs = {
            'presenter': presenter,
            'settle_delay': self.settle_delay,
            'auto_spin_delay': self.auto_spin_delay,
        }
        if self.sleep is not None:
            engine_kwargs['sleep'] = self.sleep
        engine = RoundEngine(self.math_spec, self.rng, **engine_kwargs)

        session_id = uuid.uuid4().hex
        session = engine.new_session(balance, bet, session_id=session_id)
        presenter.drain()
        with self._registry_lock:
            self._handles[session_id] = SessionHandle(session, engine, presenter)
        return self._handles[session_id]

    def get(self, session_id):
        with self._registry_lock:
            handle = self._handles.get(session_id)
        if handle is None:
            raise SessionNotFoundException(session_id)
        return handle

    def remove(self, session_id):
        with self._registry_lock:
            return self._handles.pop(session_id, None) is not None

    def __len__(self):
        with self._registry_lock:
            return len(self._handles)

    @contextmanager
    def acquire(self, session_id):
        """
        Holds the session's lock for one request.

        Raises:
            SessionNotFoundException: Unknown session id.
            RoundInProgressException: Another request holds the session.
        """
        handle = self.get(session_id)
        if not handle.lock.acquire(blocking=False):
            logger.warning(f"Concurrent request rejected for slot session {session_id}")
            raise RoundInProgressException()
        try:
            yield handle
        finally:
            handle.lock.release()
