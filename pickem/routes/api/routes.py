import logging
from datetime import datetime, timezone

from flask import jsonify, request

from pickem import get_store, limiter
from pickem.errors import ValidationError
from pickem.routes.api import bp
from pickem.routes.helpers import (
    get_json_body,
    handle_api_errors,
    parse_int,
    parse_username,
)
from pickem.services import picks as picks_service
from pickem.services import standings

logger = logging.getLogger(__name__)


# Users


@bp.route("/login", methods=["POST"])
@handle_api_errors("Server error during login")
def login():
    """Look a user up by username; 404 tells the client it may create one"""
    username = parse_username(get_json_body().get("username"))

    user = get_store().get_user_by_username(username)
    if user is None:
        return jsonify({"error": "User not found", "canCreate": True}), 404

    return jsonify(user)


@bp.route("/create-user", methods=["POST"])
@handle_api_errors("Server error during user creation")
def create_user():
    username = parse_username(get_json_body().get("username"))

    user = get_store().create_user(username)
    return jsonify(user), 201


@bp.route("/validate-user/<int:user_id>")
@handle_api_errors("Server error")
def validate_user(user_id):
    user = get_store().get_user(parse_int(user_id, "userId"))
    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user)


# Schedule


@bp.route("/games")
@handle_api_errors("Database error fetching games")
def games():
    """Games for one week, or all games ordered by week then kickoff"""
    week = parse_int(request.args.get("week"), "week", required=False)
    return jsonify(get_store().list_games(week))


@bp.route("/current-week")
@handle_api_errors("Failed to determine current week")
def current_week():
    return jsonify({"currentWeek": standings.get_current_week(get_store())})


# Picks


@bp.route("/save-picks", methods=["POST"])
@handle_api_errors("Failed to save picks")
def save_picks():
    data = get_json_body()
    user_id = parse_int(data.get("userId"), "userId")
    week = parse_int(data.get("week"), "week")

    logger.debug(f"Received save-picks request for user {user_id} week {week}")
    picks_service.save_picks(get_store(), user_id, week, data.get("picks"))

    return jsonify({"message": "Picks saved successfully"})


@bp.route("/picks-status", methods=["GET"])
@handle_api_errors("Failed to read picks status")
def get_picks_status():
    """Whether the user has submitted picks for the week"""
    user_id = parse_int(request.args.get("userId"), "userId")
    week = parse_int(request.args.get("week"), "week")

    return jsonify({"hasPicks": get_store().get_picks_status(user_id, week)})


@bp.route("/picks-status", methods=["POST"])
@handle_api_errors("Failed to upsert picks status")
def set_picks_status():
    data = get_json_body()
    user_id = parse_int(data.get("userId"), "userId")
    week = parse_int(data.get("week"), "week")
    has_picks = data.get("hasPicks")
    if not isinstance(has_picks, bool):
        raise ValidationError("hasPicks must be a boolean")

    get_store().set_picks_status(user_id, week, has_picks)
    return jsonify({"ok": True})


@bp.route("/user-saved-picks")
@handle_api_errors("Failed to fetch saved picks")
def user_saved_picks():
    user_id = parse_int(request.args.get("userId"), "userId")
    week = parse_int(request.args.get("week"), "week", required=False)

    return jsonify(get_store().get_user_saved_picks(user_id, week))


# Results and leaderboard


@bp.route("/game-results")
@handle_api_errors("Failed to fetch game results")
def game_results():
    """Results for a comma separated list of game ids; unknown ids are skipped"""
    raw_ids = request.args.get("gameIds", "")
    game_ids = [game_id.strip() for game_id in raw_ids.split(",") if game_id.strip()]
    if not game_ids:
        raise ValidationError("gameIds required")

    return jsonify(get_store().get_game_results(game_ids))


@bp.route("/user-saved-picks-week")
@handle_api_errors("Failed to fetch picks for leaderboard")
def user_saved_picks_week():
    week = parse_int(request.args.get("week"), "week")
    return jsonify(standings.get_week_pick_details(get_store(), week))


@bp.route("/user-grand-total")
@handle_api_errors("Failed to fetch grand totals")
def user_grand_total():
    week = parse_int(request.args.get("week"), "week")
    return jsonify(standings.get_grand_totals(get_store(), week))


@bp.route("/health")
@limiter.exempt
def health():
    """Health check endpoint - exempt from rate limiting for monitoring systems"""
    return jsonify(
        {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
    )
