"""Match statistics and timeline export for the live match officiating desk."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional, Protocol

from ..models import ClockProjection, EventType, MatchReport, Team, TeamStatistics
from ..utils import now_ms
from .event_log import EventLog


class ExportServiceInterface(Protocol):
    """Interface for report export."""

    def export_to_csv(self, report: MatchReport) -> str:
        ...


class MatchReportExporter:
    """Writes a match report as CSV: summary block, then the event timeline."""

    TIMELINE_HEADER = ["Minute", "Type", "Team", "Player", "Description"]

    def export_to_csv(self, report: MatchReport) -> str:
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(["Match Report", report.match_id])
        writer.writerow(["Generated:", datetime.fromtimestamp(report.generated_ts).strftime("%Y-%m-%d %H:%M:%S")])
        writer.writerow(["Status:", report.status, report.clock_state])
        writer.writerow(["Score:", report.score_line])
        writer.writerow([])

        writer.writerow(["Team", "Goals", "Yellow Cards", "Red Cards", "Substitutions", "Timeouts"])
        for stats in (report.home, report.away):
            writer.writerow([
                stats.name, stats.goals, stats.yellow_cards,
                stats.red_cards, stats.substitutions, stats.timeouts,
            ])
        writer.writerow([])

        writer.writerow(self.TIMELINE_HEADER)
        for event in report.timeline:
            writer.writerow([
                f"{event.minute:.2f}",
                event.type.value,
                event.team.value if event.team else "",
                event.player_name or "",
                event.description,
            ])

        csv_text = output.getvalue()
        output.close()
        return csv_text


class MatchReportService:
    """Builds :class:`MatchReport` snapshots from the event log."""

    def __init__(
        self,
        match_id: str,
        event_log: EventLog,
        home_team: str = "Home",
        away_team: str = "Away",
        export_service: Optional[ExportServiceInterface] = None,
    ) -> None:
        self.match_id = match_id
        self.event_log = event_log
        self.home_team = home_team
        self.away_team = away_team
        self.export_service = export_service or MatchReportExporter()

    def team_statistics(self, team: Team) -> TeamStatistics:
        log = self.event_log
        return TeamStatistics(
            team=team.value,
            name=self.home_team if team is Team.HOME else self.away_team,
            goals=len(log.goals_for(team)),
            yellow_cards=log.count(EventType.YELLOW_CARD, team),
            red_cards=log.count(EventType.RED_CARD, team),
            substitutions=log.count(EventType.SUBSTITUTION, team),
            timeouts=log.count(EventType.TIMEOUT, team),
        )

    def generate_report(self, status: str, projection: ClockProjection) -> MatchReport:
        return MatchReport(
            generated_ts=now_ms() / 1000,
            match_id=self.match_id,
            status=status,
            clock_state=projection.state.value,
            period_name=projection.period_name or None,
            total_playing_ms=projection.total_playing_ms,
            home=self.team_statistics(Team.HOME),
            away=self.team_statistics(Team.AWAY),
            timeline=self.event_log.ordered(),
        )

    def export_report_csv(self, status: str, projection: ClockProjection) -> str:
        return self.export_service.export_to_csv(self.generate_report(status, projection))
