import unittest
from unittest.mock import Mock

import pytest

from livematch.exceptions import AppendError
from livematch.models import EventType, GoalType, MatchEvent, Team
from livematch.services import EventLog


def goal(event_id, minute, team, goal_type="goal", player="p1"):
    return MatchEvent(
        id=event_id,
        match_id="m1",
        type=EventType.GOAL,
        minute=minute,
        team=team,
        player_id=player,
        player_name=player.upper(),
        description="Goal",
        additional_info={"goalType": goal_type},
    )


class EventLogAppendTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = EventLog("m1")

    def test_record_goal_updates_score(self) -> None:
        event = self.log.record(
            EventType.GOAL, 12.0, team=Team.HOME, player_id="p1", player_name="Ana",
            additional_info={"goalType": "goal"},
        )

        self.assertEqual(event.match_id, "m1")
        self.assertEqual(event.minute, 12.0)
        self.assertEqual(len(self.log), 1)
        self.assertEqual(self.log.score(), (1, 0))

    def test_goal_without_team_rejected(self) -> None:
        with self.assertRaises(AppendError) as ctx:
            self.log.record(EventType.GOAL, 3.0, player_id="p1")

        self.assertIn("goal requires a team", ctx.exception.errors)
        self.assertEqual(len(self.log), 0)

    def test_card_without_player_rejected(self) -> None:
        with self.assertRaises(AppendError):
            self.log.record(EventType.YELLOW_CARD, 3.0, team=Team.AWAY)

    def test_substitution_requires_distinct_players(self) -> None:
        with self.assertRaises(AppendError):
            self.log.record(
                EventType.SUBSTITUTION, 8.0, team=Team.HOME,
                additional_info={"playerInId": "p7", "playerOutId": "p7"},
            )
        with self.assertRaises(AppendError):
            self.log.record(
                EventType.SUBSTITUTION, 8.0, team=Team.HOME,
                additional_info={"playerInId": "p7"},
            )

    def test_negative_or_nan_minute_rejected(self) -> None:
        with self.assertRaises(AppendError):
            self.log.record(EventType.KICKOFF, -1.0)
        with self.assertRaises(AppendError):
            self.log.record(EventType.KICKOFF, float("nan"))

    def test_unknown_goal_type_rejected(self) -> None:
        with self.assertRaises(AppendError):
            self.log.append(goal("g1", 4.0, Team.HOME, goal_type="header"))

    def test_duplicate_id_rejected(self) -> None:
        self.log.append(goal("g1", 4.0, Team.HOME))
        with self.assertRaises(AppendError):
            self.log.append(goal("g1", 5.0, Team.HOME))
        self.assertEqual(len(self.log), 1)

    def test_listeners_notified_and_failures_contained(self) -> None:
        broken = Mock(side_effect=RuntimeError("network down"))
        listener = Mock()
        self.log.subscribe(broken)
        self.log.subscribe(listener)

        event = self.log.record(EventType.KICKOFF, 0)

        broken.assert_called_once_with(event)
        listener.assert_called_once_with(event)
        self.assertEqual(len(self.log), 1)

        self.log.unsubscribe(listener)
        self.log.record(EventType.PAUSE, 1.0)
        listener.assert_called_once()


class EventLogQueryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = EventLog("m1")
        self.log.append(goal("g1", 15.0, Team.HOME))
        self.log.append(goal("g2", 3.5, Team.AWAY, player="p9"))
        self.log.append(goal("g3", 15.0, Team.HOME, goal_type=GoalType.OWN_GOAL.value, player="p2"))
        self.log.append(goal("g4", 30.2, Team.AWAY, goal_type=GoalType.PENALTY.value, player="p9"))

    def test_own_goal_credited_to_opponent(self) -> None:
        self.assertEqual(self.log.score(), (1, 3))
        own = [g for g in self.log.goals() if g.type is GoalType.OWN_GOAL][0]
        self.assertEqual(own.team, Team.HOME)
        self.assertEqual(own.credited_team, Team.AWAY)

    def test_goal_counts_add_up(self) -> None:
        home = len(self.log.goals_for(Team.HOME))
        away = len(self.log.goals_for(Team.AWAY))

        self.assertEqual(home + away, len(self.log.goals()))
        self.assertEqual((home, away), self.log.score())

    def test_goal_sequence_is_restartable_and_live(self) -> None:
        away_goals = self.log.goals_for(Team.AWAY)
        first = [g.id for g in away_goals]
        second = [g.id for g in away_goals]
        self.assertEqual(first, second)

        self.log.append(goal("g5", 35.0, Team.AWAY))
        self.assertEqual(len(away_goals), 4)

    def test_ordered_is_stable_by_minute(self) -> None:
        self.assertEqual([e.id for e in self.log.ordered()], ["g2", "g1", "g3", "g4"])
        # Insertion order is preserved underneath
        self.assertEqual([e.id for e in self.log.events], ["g1", "g2", "g3", "g4"])

    def test_count_by_type_and_team(self) -> None:
        self.assertEqual(self.log.count(EventType.GOAL), 4)
        self.assertEqual(self.log.count(EventType.GOAL, Team.HOME), 2)
        self.assertFalse(self.log.has(EventType.FINAL_WHISTLE))

    def test_clear_empties_log(self) -> None:
        self.log.clear()
        self.assertEqual(self.log.score(), (0, 0))
        self.assertEqual(len(self.log), 0)


def test_merge_skips_duplicates_and_malformed_without_notifying():
    log = EventLog("m1")
    listener = Mock()
    log.subscribe(listener)
    log.append(goal("g1", 1.0, Team.HOME))
    listener.reset_mock()

    bad = MatchEvent(id="x", match_id="m1", type=EventType.GOAL, minute=2.0)
    added = log.merge([goal("g1", 1.0, Team.HOME), goal("g2", 2.0, Team.AWAY), bad])

    assert added == 1
    assert [e.id for e in log.events] == ["g1", "g2"]
    listener.assert_not_called()


def test_out_of_order_events_loaded_then_sorted():
    log = EventLog("m1", [goal("late", 30.0, Team.HOME), goal("early", 2.0, Team.AWAY)])
    assert [e.id for e in log.ordered()] == ["early", "late"]


@pytest.mark.parametrize("event_type", [EventType.GOAL, EventType.RED_CARD, EventType.TIMEOUT])
def test_team_events_need_a_team(event_type):
    log = EventLog("m1")
    with pytest.raises(AppendError):
        log.record(event_type, 1.0, player_id="p1")
