import threading
import unittest
from unittest.mock import Mock

from livematch.exceptions import TransientPersistenceError
from livematch.models import Checkpoint, MatchStatus
from livematch.services import LoadOutcome, MatchBackendClient, ReconciliationLayer


def offline(operation="put_state"):
    return TransientPersistenceError(operation, "No response from server")


class ReconciliationLoadTests(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = Mock(spec=MatchBackendClient)
        self.sync = ReconciliationLayer("m1", self.backend)

    def tearDown(self) -> None:
        self.sync.close()

    def test_missing_checkpoint_is_fresh_start(self) -> None:
        self.backend.get_state.return_value = None

        result = self.sync.load_checkpoint()

        self.assertEqual(result.outcome, LoadOutcome.NOT_FOUND)
        self.assertTrue(result.is_fresh_start)
        self.assertEqual(self.sync.warnings, [])

    def test_transport_failure_is_reported_not_raised(self) -> None:
        self.backend.get_state.side_effect = offline("get_state")

        result = self.sync.load_checkpoint()

        self.assertEqual(result.outcome, LoadOutcome.FAILED)
        self.assertFalse(result.is_fresh_start)
        self.assertIsInstance(result.error, TransientPersistenceError)
        self.assertEqual(len(self.sync.warnings), 1)

    def test_loaded_checkpoint(self) -> None:
        self.backend.get_state.return_value = Checkpoint(version=3)

        result = self.sync.load_checkpoint()

        self.assertEqual(result.outcome, LoadOutcome.LOADED)
        self.assertEqual(result.checkpoint.version, 3)

    def test_load_older_than_confirmed_save_is_discarded(self) -> None:
        self.sync.save_checkpoint(Checkpoint(version=5))
        self.backend.get_state.return_value = Checkpoint(version=3)

        result = self.sync.load_checkpoint()

        self.assertEqual(self.sync.confirmed_version, 5)
        self.assertEqual(result.outcome, LoadOutcome.DISCARDED)

    def test_load_during_in_flight_write_is_discarded(self) -> None:
        release = threading.Event()
        started = threading.Event()

        def slow_put(match_id, checkpoint):
            started.set()
            release.wait(5)

        self.backend.put_state.side_effect = slow_put
        self.backend.get_state.return_value = Checkpoint(version=99)

        self.sync.submit_checkpoint(Checkpoint(version=1), "Pause")
        self.assertTrue(started.wait(5))
        self.assertTrue(self.sync.has_pending_writes)

        result = self.sync.load_checkpoint()
        release.set()
        self.sync.flush(timeout=5)

        self.assertEqual(result.outcome, LoadOutcome.DISCARDED)
        self.assertFalse(self.sync.has_pending_writes)

    def test_load_events_failure_returns_result(self) -> None:
        self.backend.get_events.side_effect = offline("get_events")

        result = self.sync.load_events()

        self.assertFalse(result.success)
        self.assertEqual(self.sync.warnings[0].message, "Could not load match events")


class ReconciliationWriteTests(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = Mock(spec=MatchBackendClient)
        self.sync = ReconciliationLayer("m1", self.backend)

    def tearDown(self) -> None:
        self.sync.close()

    def test_failed_save_becomes_warning(self) -> None:
        self.backend.put_state.side_effect = offline()

        result = self.sync.save_checkpoint(Checkpoint(version=2), "Pause")

        self.assertFalse(result.success)
        self.assertEqual(self.sync.confirmed_version, 0)
        warning = self.sync.warnings[0]
        self.assertEqual(warning.operation, "save_state")
        self.assertEqual(warning.message, "Pause saved locally but failed to sync")
        self.assertIn("message", warning.to_json())

        self.sync.dismiss_warnings()
        self.assertEqual(self.sync.warnings, [])

    def test_writes_issued_in_submission_order(self) -> None:
        calls = []
        self.backend.put_state.side_effect = lambda m, cp: calls.append(("state", cp.version))
        self.backend.post_event.side_effect = lambda m, e: calls.append(("event", e))
        self.backend.put_score.side_effect = lambda m, h, a: calls.append(("score", h, a))
        self.backend.put_status.side_effect = lambda m, s: calls.append(("status", s))

        self.sync.submit_checkpoint(Checkpoint(version=1))
        self.sync.submit_event("goal-1")
        self.sync.submit_score(1, 0)
        self.sync.submit_status(MatchStatus.LIVE)
        self.sync.submit_checkpoint(Checkpoint(version=2))
        self.sync.flush(timeout=5)

        self.assertEqual(calls, [
            ("state", 1), ("event", "goal-1"), ("score", 1, 0),
            ("status", MatchStatus.LIVE), ("state", 2),
        ])
        self.assertEqual(self.sync.confirmed_version, 2)

    def test_submitted_checkpoint_is_a_snapshot(self) -> None:
        seen = []
        self.backend.put_state.side_effect = lambda m, cp: seen.append(cp.elapsed_in_period_ms)
        checkpoint = Checkpoint(elapsed_in_period_ms=1000, version=1)

        self.sync.submit_checkpoint(checkpoint)
        checkpoint.elapsed_in_period_ms = 9999
        self.sync.flush(timeout=5)

        self.assertEqual(seen, [1000])

    def test_retry_resends_unconfirmed_checkpoint(self) -> None:
        self.backend.put_state.side_effect = offline()
        self.sync.submit_checkpoint(Checkpoint(version=4), "Heartbeat")
        self.sync.flush(timeout=5)
        self.assertEqual(self.sync.confirmed_version, 0)

        self.backend.put_state.side_effect = None
        future = self.sync.retry()
        self.assertIsNotNone(future)
        self.assertTrue(future.result(timeout=5).success)
        self.assertEqual(self.sync.confirmed_version, 4)

        self.assertIsNone(self.sync.retry())

    def test_save_periods_returns_backend_match(self) -> None:
        self.backend.put_periods.return_value = {"matchDuration": 40}
        result = self.sync.save_periods([])
        self.assertTrue(result.success)
        self.assertEqual(result.value, {"matchDuration": 40})

    def test_closed_layer_drops_writes(self) -> None:
        self.sync.close()
        self.assertIsNone(self.sync.submit_score(1, 1))
        self.backend.put_score.assert_not_called()
