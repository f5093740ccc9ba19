import logging

from flask import current_app, jsonify

from pickem import get_results_sync, limiter
from pickem.routes.admin import bp
from pickem.routes.helpers import get_json_body, handle_api_errors, parse_int

logger = logging.getLogger(__name__)


def _update_games_limit():
    return current_app.config.get("UPDATE_GAMES_RATE_LIMIT", "10 per hour")


@bp.route("/update-games", methods=["POST"])
@limiter.limit(_update_games_limit)
@handle_api_errors("Failed to update games")
def update_games():
    """
    Manually trigger the results update.

    Optional JSON body ``{"season": 2025, "week": 3}`` narrows the run to one
    season and/or week; by default the configured season is refreshed in full.
    """
    data = get_json_body()
    season = parse_int(data.get("season"), "season", required=False)
    week = parse_int(data.get("week"), "week", required=False)

    logger.info(f"Manual game update requested (season={season}, week={week})")
    summary = get_results_sync().update_game_results(
        season=season, weeks=[week] if week is not None else None
    )

    return jsonify(
        {"ok": True, "message": "Games updated successfully", "summary": summary}
    )


@bp.route("/admin/scheduler")
@handle_api_errors("Failed to read scheduler status")
def scheduler_status():
    """Scheduler jobs and results update statistics"""
    from pickem.services.scheduler_service import scheduler_service

    return jsonify(scheduler_service.get_status(get_results_sync()))
