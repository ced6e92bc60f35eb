"""Test match statistics and CSV export."""

import csv
import io
import unittest

from livematch.models import ClockProjection, ClockState, EventType, Team
from livematch.services import EventLog, MatchReportService


class TestMatchReport(unittest.TestCase):
    """Test team statistics and timeline export."""

    def setUp(self):
        """Set up an event log with a few officiating events."""
        self.log = EventLog("m1")
        self.log.record(EventType.KICKOFF, 0, description="Kick off")
        self.log.record(EventType.GOAL, 12.5, team=Team.HOME, player_id="p1", player_name="Ana",
                        description="Goal by Ana", additional_info={"goalType": "goal"})
        self.log.record(EventType.YELLOW_CARD, 4.0, team=Team.AWAY, player_id="p9", player_name="Cy",
                        description="Yellow card for Cy")
        self.log.record(EventType.GOAL, 18.0, team=Team.AWAY, player_id="p9", player_name="Cy",
                        description="Own goal by Cy", additional_info={"goalType": "own_goal"})
        self.log.record(EventType.TIMEOUT, 19.0, team=Team.AWAY, description="Timeout called by Tigers")
        self.service = MatchReportService("m1", self.log, "Lions", "Tigers")
        self.projection = ClockProjection(
            state=ClockState.PAUSED_AT_BREAK,
            period_index=1,
            period_name="Half Time",
            is_break=True,
            elapsed_in_period_ms=0,
            total_playing_ms=20 * 60_000,
            at=0,
        )

    def test_team_statistics(self):
        """Own goals count for the opponent; other events for the acting side."""
        home = self.service.team_statistics(Team.HOME)
        away = self.service.team_statistics(Team.AWAY)

        self.assertEqual(home.goals, 2)
        self.assertEqual(away.goals, 0)
        self.assertEqual(away.yellow_cards, 1)
        self.assertEqual(away.timeouts, 1)
        self.assertEqual(home.name, "Lions")

    def test_generate_report(self):
        report = self.service.generate_report("Live", self.projection)

        self.assertEqual(report.score_line, "Lions 2 - 0 Tigers")
        self.assertEqual(report.clock_state, "paused_at_break")
        self.assertEqual(report.period_name, "Half Time")
        self.assertEqual([e.minute for e in report.timeline], [0, 4.0, 12.5, 18.0, 19.0])

        data = report.to_json()
        self.assertEqual(data["home"]["goals"], 2)
        self.assertEqual(data["away"]["yellowCards"], 1)
        self.assertEqual(len(data["timeline"]), 5)

    def test_csv_export_content(self):
        """CSV holds the summary, the team table and the ordered timeline."""
        csv_content = self.service.export_report_csv("Live", self.projection)
        rows = list(csv.reader(io.StringIO(csv_content)))

        self.assertEqual(rows[0], ["Match Report", "m1"])
        self.assertIn(["Score:", "Lions 2 - 0 Tigers"], rows)
        self.assertIn(["Lions", "2", "0", "0", "0", "0"], rows)
        self.assertIn(["Tigers", "0", "1", "0", "0", "1"], rows)

        header = rows.index(["Minute", "Type", "Team", "Player", "Description"])
        timeline = rows[header + 1:]
        self.assertEqual([r[0] for r in timeline], ["0.00", "4.00", "12.50", "18.00", "19.00"])
        self.assertEqual(timeline[2], ["12.50", "goal", "home", "Ana", "Goal by Ana"])


if __name__ == "__main__":
    unittest.main()
