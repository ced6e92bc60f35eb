"""
Web application module for the live match officiating desk.

This module contains the Flask server exposing JSON API endpoints for the
officiating actions of each open match: clock control, event recording,
period editing, sync warnings and the statistics report.
"""
import atexit
import logging
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request

from ..exceptions import (
    ClockTransitionError, LiveMatchError, MatchNotFoundError, ValidationError
)
from ..models import LiveMatch
from ..services import MatchSession, ServiceFactory, SessionRegistry
from ..utils import APP_TITLE, Settings, configure_logging

logger = logging.getLogger(__name__)


def _payload() -> Dict[str, Any]:
    """Request body as a dict; empty or non-JSON bodies count as ``{}``."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _session_state(session: MatchSession) -> Dict[str, Any]:
    """Everything the control screen needs to render one match."""
    projection = session.projection()
    home, away = session.score()
    return {
        "matchId": session.match_id,
        "status": session.status.value,
        "homeTeam": session.home_team,
        "awayTeam": session.away_team,
        "homeScore": home,
        "awayScore": away,
        "matchDuration": session.match_duration,
        "clock": projection.to_json(),
        "periods": [p.to_json() for p in session.engine.periods],
        "warnings": [w.to_json() for w in session.warnings],
    }


def create_app(registry: Optional[SessionRegistry] = None, settings: Optional[Settings] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        registry: Session registry to serve; one is built from ``settings`` if omitted
        settings: Runtime settings used when building the registry

    Returns:
        Configured Flask application instance
    """
    settings = settings or Settings()
    registry = registry or SessionRegistry(ServiceFactory(settings))

    app = Flask(__name__)
    app.config["SESSION_REGISTRY"] = registry

    def _session(match_id: str) -> MatchSession:
        session = registry.get(match_id)
        if session is None:
            raise MatchNotFoundError(match_id)
        return session

    # ==================== Error handlers ==================== #

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({"success": False, "error": str(e), "errors": e.errors}), 400

    @app.errorhandler(ClockTransitionError)
    def handle_transition_error(e: ClockTransitionError):
        return jsonify({"success": False, "error": str(e)}), 400

    @app.errorhandler(MatchNotFoundError)
    def handle_not_found(e: MatchNotFoundError):
        return jsonify({"success": False, "error": str(e)}), 404

    @app.errorhandler(LiveMatchError)
    def handle_live_match_error(e: LiveMatchError):
        logger.error("Unhandled officiating error: %s", e)
        return jsonify({"success": False, "error": str(e)}), 500

    # ==================== API Endpoints ==================== #

    @app.route("/api/matches", methods=["GET"])
    def list_matches():
        """List the match ids with an open session."""
        return jsonify({"success": True, "title": APP_TITLE, "matches": registry.match_ids()})

    @app.route("/api/matches/<match_id>/activate", methods=["POST"])
    def activate_match(match_id: str):
        """Open (or re-open) the officiating session for a match."""
        data = _payload()
        data["id"] = match_id
        try:
            match = LiveMatch.from_json(data)
        except (TypeError, ValueError) as e:
            raise ValidationError([str(e)]) from None

        session = registry.open(match)
        return jsonify({"success": True, "state": _session_state(session)})

    @app.route("/api/matches/<match_id>/deactivate", methods=["POST"])
    def deactivate_match(match_id: str):
        if not registry.close(match_id):
            raise MatchNotFoundError(match_id)
        return jsonify({"success": True})

    @app.route("/api/matches/<match_id>", methods=["GET"])
    def get_match(match_id: str):
        return jsonify({"success": True, "state": _session_state(_session(match_id))})

    @app.route("/api/matches/<match_id>/snapshot", methods=["GET"])
    def get_snapshot(match_id: str):
        return jsonify({"success": True, "match": _session(match_id).snapshot().to_json()})

    # ---- Clock ---- #

    @app.route("/api/matches/<match_id>/clock", methods=["GET"])
    def get_clock(match_id: str):
        return jsonify({"success": True, "clock": _session(match_id).projection().to_json()})

    @app.route("/api/matches/<match_id>/clock/start", methods=["POST"])
    def start_clock(match_id: str):
        projection = _session(match_id).start()
        return jsonify({"success": True, "clock": projection.to_json()})

    @app.route("/api/matches/<match_id>/clock/pause", methods=["POST"])
    def pause_clock(match_id: str):
        projection = _session(match_id).pause()
        return jsonify({"success": True, "clock": projection.to_json()})

    @app.route("/api/matches/<match_id>/clock/resume", methods=["POST"])
    def resume_clock(match_id: str):
        projection = _session(match_id).resume()
        return jsonify({"success": True, "clock": projection.to_json()})

    @app.route("/api/matches/<match_id>/end", methods=["POST"])
    def end_match(match_id: str):
        projection = _session(match_id).end_match()
        return jsonify({"success": True, "clock": projection.to_json()})

    @app.route("/api/matches/<match_id>/reset", methods=["POST"])
    def reset_match(match_id: str):
        """Reset the match; the body must carry ``{"confirm": true}``."""
        session = _session(match_id)
        session.reset(confirm=bool(_payload().get("confirm")))
        return jsonify({"success": True, "state": _session_state(session)})

    # ---- Periods ---- #

    @app.route("/api/matches/<match_id>/periods", methods=["GET"])
    def get_periods(match_id: str):
        session = _session(match_id)
        return jsonify({
            "success": True,
            "periods": [p.to_json() for p in session.engine.periods],
            "matchDuration": session.match_duration,
        })

    @app.route("/api/matches/<match_id>/periods", methods=["PUT"])
    def update_periods(match_id: str):
        """Replace the schedule. Accepts a bare list or ``{"periods": [...]}``."""
        session = _session(match_id)
        data = request.get_json(silent=True)
        periods = data.get("periods") if isinstance(data, dict) else data
        if not isinstance(periods, list):
            raise ValidationError(["A list of periods is required."])
        session.update_periods(periods)
        return jsonify({
            "success": True,
            "periods": [p.to_json() for p in session.engine.periods],
            "matchDuration": session.match_duration,
        })

    @app.route("/api/matches/<match_id>/periods", methods=["POST"])
    def add_period(match_id: str):
        session = _session(match_id)
        data = _payload()
        period = session.add_period(
            is_break=bool(data.get("isBreak", False)),
            name=data.get("name"),
            duration_minutes=data.get("duration"),
        )
        return jsonify({
            "success": True,
            "period": period.to_json(),
            "periods": [p.to_json() for p in session.engine.periods],
            "matchDuration": session.match_duration,
        })

    @app.route("/api/matches/<match_id>/periods/<period_id>", methods=["DELETE"])
    def remove_period(match_id: str, period_id: str):
        session = _session(match_id)
        session.remove_period(period_id)
        return jsonify({
            "success": True,
            "periods": [p.to_json() for p in session.engine.periods],
            "matchDuration": session.match_duration,
        })

    # ---- Events ---- #

    @app.route("/api/matches/<match_id>/events", methods=["GET"])
    def get_events(match_id: str):
        events = _session(match_id).event_log.ordered()
        return jsonify({"success": True, "events": [e.to_json() for e in events]})

    @app.route("/api/matches/<match_id>/goals", methods=["POST"])
    def add_goal(match_id: str):
        session = _session(match_id)
        data = _payload()
        event = session.add_goal(
            player_id=data.get("playerId"),
            player_name=data.get("playerName"),
            team=data.get("team"),
            goal_type=data.get("goalType") or "goal",
            assist_player_id=data.get("assistPlayerId"),
            assist_player_name=data.get("assistPlayerName"),
        )
        home, away = session.score()
        return jsonify({"success": True, "event": event.to_json(), "homeScore": home, "awayScore": away})

    @app.route("/api/matches/<match_id>/cards", methods=["POST"])
    def add_card(match_id: str):
        data = _payload()
        event = _session(match_id).add_card(
            team=data.get("team"),
            player_id=data.get("playerId"),
            player_name=data.get("playerName"),
            red=str(data.get("card", "yellow")).lower() == "red",
        )
        return jsonify({"success": True, "event": event.to_json()})

    @app.route("/api/matches/<match_id>/substitutions", methods=["POST"])
    def add_substitution(match_id: str):
        data = _payload()
        event = _session(match_id).add_substitution(
            team=data.get("team"),
            player_out_id=data.get("playerOutId"),
            player_out_name=data.get("playerOutName"),
            player_in_id=data.get("playerInId"),
            player_in_name=data.get("playerInName"),
        )
        return jsonify({"success": True, "event": event.to_json()})

    @app.route("/api/matches/<match_id>/timeouts", methods=["POST"])
    def add_timeout(match_id: str):
        event = _session(match_id).add_timeout(team=_payload().get("team"))
        return jsonify({"success": True, "event": event.to_json()})

    # ---- Sync warnings ---- #

    @app.route("/api/matches/<match_id>/warnings", methods=["GET"])
    def get_warnings(match_id: str):
        warnings = _session(match_id).warnings
        return jsonify({"success": True, "warnings": [w.to_json() for w in warnings]})

    @app.route("/api/matches/<match_id>/warnings", methods=["DELETE"])
    def dismiss_warnings(match_id: str):
        _session(match_id).dismiss_warnings()
        return jsonify({"success": True})

    @app.route("/api/matches/<match_id>/sync/retry", methods=["POST"])
    def retry_sync(match_id: str):
        return jsonify({"success": True, "retried": _session(match_id).retry_sync()})

    # ---- Report ---- #

    @app.route("/api/matches/<match_id>/report", methods=["GET"])
    def get_report(match_id: str):
        return jsonify({"success": True, "report": _session(match_id).report().to_json()})

    @app.route("/api/matches/<match_id>/report.csv", methods=["GET"])
    def export_report(match_id: str):
        csv_text = _session(match_id).export_report_csv()
        return Response(
            csv_text,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=match_{match_id}_report.csv"},
        )

    return app


def run_web_app(settings: Optional[Settings] = None) -> None:
    """
    Run the web application.

    Args:
        settings: Runtime settings; read from the environment if omitted
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    registry = SessionRegistry(ServiceFactory(settings))
    atexit.register(registry.close_all)

    app = create_app(registry, settings)
    logger.info("Serving %s on http://%s:%s", APP_TITLE, settings.host, settings.port)
    app.run(host=settings.host, port=settings.port, debug=False, threaded=True)


def main() -> None:
    """Console entry point for ``livematch-web``."""
    run_web_app()


if __name__ == "__main__":
    main()
