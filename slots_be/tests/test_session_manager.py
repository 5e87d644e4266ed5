import unittest

from slots_be.exceptions import RoundInProgressException, SessionNotFoundException
from slots_be.services.session_manager import SessionManager
from slots_be.tests.helpers import make_math_spec
from slots_be.utils.rng import create_rng


class TestSessionManager(unittest.TestCase):

    def setUp(self):
        self.sleeps = []
        self.manager = SessionManager(make_math_spec(), create_rng(7), settle_delay=0.2,
                                      auto_spin_delay=0.1, sleep=self.sleeps.append)

    def test_create_and_get(self):
        handle = self.manager.create(500, 20)
        self.assertEqual(handle.session.balance, 500)
        self.assertEqual(handle.session.bet, 20)
        self.assertIs(self.manager.get(handle.session.session_id), handle)
        self.assertEqual(len(self.manager), 1)
        # Creation events are not carried into the first spin
        self.assertEqual(handle.presenter.events, [])

    def test_sessions_get_their_own_engine(self):
        first = self.manager.create(100)
        second = self.manager.create(100)
        self.assertNotEqual(first.session.session_id, second.session.session_id)
        self.assertIsNot(first.engine, second.engine)
        self.assertIsNot(first.presenter, second.presenter)

    def test_unknown_session(self):
        with self.assertRaises(SessionNotFoundException):
            self.manager.get('missing')

    def test_remove(self):
        handle = self.manager.create(100)
        self.assertTrue(self.manager.remove(handle.session.session_id))
        self.assertFalse(self.manager.remove(handle.session.session_id))
        self.assertEqual(len(self.manager), 0)

    def test_acquire_rejects_concurrent_use(self):
        handle = self.manager.create(100)
        with self.manager.acquire(handle.session.session_id):
            with self.assertRaises(RoundInProgressException):
                with self.manager.acquire(handle.session.session_id):
                    pass
        self.assertFalse(handle.lock.locked())

    def test_injected_sleep_reaches_engine(self):
        handle = self.manager.create(100, 10)
        response = handle.engine.request_spin(handle.session)
        self.assertTrue(response.accepted)
        self.assertIn(0.2, self.sleeps)


if __name__ == '__main__':
    unittest.main()
