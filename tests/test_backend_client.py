import json
import unittest
from unittest.mock import MagicMock

import requests

from livematch.exceptions import TransientPersistenceError
from livematch.models import Checkpoint, EventType, MatchEvent, MatchStatus, Period, Team
from livematch.services import MatchBackendClient

BASE = "http://backend.test/api/futsal/matches"


def make_response(status=200, payload=None):
    response = requests.Response()
    response.status_code = status
    response.url = BASE
    response._content = json.dumps(payload).encode() if payload is not None else b""
    return response


class MatchBackendClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.client = MatchBackendClient(BASE + "/", timeout=3, session=self.session)

    def last_call(self):
        args, kwargs = self.session.request.call_args
        return args, kwargs

    def test_headers_and_base_url(self) -> None:
        self.session.headers.update.assert_called_once()
        self.assertEqual(self.client.base_url, BASE)

    def test_get_state_parses_checkpoint(self) -> None:
        self.session.request.return_value = make_response(200, {
            "currentPeriodOrder": 1,
            "elapsedInPeriodMs": 1500,
            "totalPlayingMs": 1_200_000,
            "lastUpdatedAt": 99,
            "isPaused": True,
            "version": 4,
        })

        checkpoint = self.client.get_state("42")

        args, kwargs = self.last_call()
        self.assertEqual(args, ("GET", f"{BASE}/42/state"))
        self.assertEqual(kwargs["timeout"], 3)
        self.assertEqual(checkpoint.current_period_order, 1)
        self.assertEqual(checkpoint.total_playing_ms, 1_200_000)
        self.assertTrue(checkpoint.is_paused)
        self.assertEqual(checkpoint.version, 4)

    def test_get_state_accepts_legacy_keys(self) -> None:
        self.session.request.return_value = make_response(200, {
            "currentPeriodOrder": 0,
            "elapsedTimeInCurrentPeriodMs": 60_000,
            "totalPlayingTimeMs": 60_000,
            "lastUpdatedTimestamp": 5,
            "matchPaused": False,
        })
        checkpoint = self.client.get_state("42")
        self.assertEqual(checkpoint.elapsed_in_period_ms, 60_000)
        self.assertFalse(checkpoint.is_paused)

    def test_get_state_not_found_is_none(self) -> None:
        self.session.request.return_value = make_response(404)
        self.assertIsNone(self.client.get_state("42"))

    def test_get_state_empty_body_is_none(self) -> None:
        self.session.request.return_value = make_response(200)
        self.assertIsNone(self.client.get_state("42"))

    def test_server_error_raises_transient(self) -> None:
        self.session.request.return_value = make_response(503)
        with self.assertRaises(TransientPersistenceError) as ctx:
            self.client.get_state("42")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.operation, "get_state")

    def test_transport_error_raises_transient(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(TransientPersistenceError) as ctx:
            self.client.put_state("42", Checkpoint())
        self.assertIsNone(ctx.exception.status_code)

    def test_not_found_outside_state_is_an_error(self) -> None:
        self.session.request.return_value = make_response(404)
        with self.assertRaises(TransientPersistenceError):
            self.client.put_score("42", 1, 0)

    def test_put_state_sends_checkpoint(self) -> None:
        self.session.request.return_value = make_response(200)
        self.client.put_state("42", Checkpoint(current_period_order=2, version=9))

        args, kwargs = self.last_call()
        self.assertEqual(args, ("PUT", f"{BASE}/42/state"))
        self.assertEqual(kwargs["json"]["currentPeriodOrder"], 2)
        self.assertEqual(kwargs["json"]["version"], 9)

    def test_post_event(self) -> None:
        self.session.request.return_value = make_response(201)
        event = MatchEvent(
            id="e1", match_id="42", type=EventType.GOAL, minute=12.0, team=Team.HOME,
            player_id="p1", additional_info={"goalType": "goal"},
        )
        self.client.post_event("42", event)

        args, kwargs = self.last_call()
        self.assertEqual(args, ("POST", f"{BASE}/42/events"))
        self.assertEqual(kwargs["json"]["type"], "goal")
        self.assertEqual(kwargs["json"]["team"], "home")

    def test_get_events(self) -> None:
        self.session.request.return_value = make_response(200, [
            {"id": "e1", "matchId": "42", "type": "kick_off", "minute": 0},
            {"id": "e2", "matchId": "42", "type": "goal", "minute": 3.5, "team": "AWAY", "playerId": 7},
        ])

        events = self.client.get_events("42")

        self.assertEqual([e.type for e in events], [EventType.KICKOFF, EventType.GOAL])
        self.assertEqual(events[1].team, Team.AWAY)
        self.assertEqual(events[1].player_id, "7")

    def test_get_events_skips_unreadable_entries(self) -> None:
        self.session.request.return_value = make_response(200, [
            {"id": "e1", "matchId": "42", "type": "kick_off", "minute": 0},
            {"id": "e2", "matchId": "42", "type": "half_time", "minute": 20},
            {"id": "e3", "matchId": "42", "type": "second_half_start", "minute": 20},
            {"id": "e4", "matchId": "42", "type": "corner_kick", "minute": 21},
            {"id": "e5", "matchId": "42", "type": "goal", "minute": "late"},
            "not an event",
            {"id": "e6", "matchId": "42", "type": "full_time", "minute": 40},
        ])

        events = self.client.get_events("42")

        self.assertEqual([e.id for e in events], ["e1", "e2", "e3", "e6"])
        self.assertEqual(
            [e.type for e in events],
            [EventType.KICKOFF, EventType.PAUSE, EventType.PERIOD_START, EventType.FINAL_WHISTLE],
        )

    def test_get_events_requires_a_list(self) -> None:
        self.session.request.return_value = make_response(200, {"events": []})
        with self.assertRaises(TransientPersistenceError) as ctx:
            self.client.get_events("42")
        self.assertIn("Malformed response body", str(ctx.exception))

    def test_get_state_unreadable_checkpoint_raises_transient(self) -> None:
        self.session.request.return_value = make_response(200, {
            "currentPeriodOrder": 0,
            "lastUpdatedAt": "2024-03-01T10:00:00Z",
        })
        with self.assertRaises(TransientPersistenceError) as ctx:
            self.client.get_state("42")
        self.assertEqual(ctx.exception.operation, "get_state")

        self.session.request.return_value = make_response(200, ["not", "a", "checkpoint"])
        with self.assertRaises(TransientPersistenceError):
            self.client.get_state("42")

    def test_put_score(self) -> None:
        self.session.request.return_value = make_response(200)
        self.client.put_score("42", 2, 1)
        _, kwargs = self.last_call()
        self.assertEqual(kwargs["json"], {"homeScore": 2, "awayScore": 1})

    def test_put_periods_returns_match(self) -> None:
        self.session.request.return_value = make_response(200, {"id": 42, "matchDuration": 40})
        result = self.client.put_periods("42", [Period("p1", "First Half", 20, 0), Period("p2", "Second Half", 20, 1)])

        _, kwargs = self.last_call()
        self.assertEqual(len(kwargs["json"]), 2)
        self.assertEqual(kwargs["json"][0]["duration"], 20)
        self.assertEqual(result["matchDuration"], 40)

    def test_put_status_and_reset(self) -> None:
        self.session.request.return_value = make_response(200)

        self.client.put_status("42", MatchStatus.LIVE)
        _, kwargs = self.last_call()
        self.assertEqual(kwargs["json"], {"status": "Live"})

        self.client.reset_match("42")
        args, kwargs = self.last_call()
        self.assertEqual(args, ("POST", f"{BASE}/42/reset"))
        self.assertEqual(kwargs["json"]["homeScore"], 0)
        self.assertIsNone(kwargs["json"]["periodState"])

    def test_malformed_body_raises_transient(self) -> None:
        response = make_response(200)
        response._content = b"<html>"
        self.session.request.return_value = response
        with self.assertRaises(TransientPersistenceError):
            self.client.get_events("42")
