"""
Pick submission with the weekly lock.

A week locks when its earliest game kicks off: from then on no pick in
that week can be created or changed.
"""

import logging

from pickem.errors import NotFoundError, PicksLockedError, ValidationError
from pickem.utils.timezone_utils import ensure_utc, get_utc_time

logger = logging.getLogger(__name__)


def is_week_locked(first_game_time, now=None):
    """True once ``now`` has reached the week's first kickoff"""
    if first_game_time is None:
        return False
    now = ensure_utc(now or get_utc_time())
    return now >= ensure_utc(first_game_time)


def validate_picks_payload(picks):
    """Return the picks as {game_id: team} or raise ValidationError"""
    if not isinstance(picks, dict) or not picks:
        raise ValidationError("picks must be a non-empty object of gameId to team")

    cleaned = {}
    for game_id, team in picks.items():
        if not isinstance(team, str) or not team.strip():
            raise ValidationError(f"Invalid team for game {game_id}")
        cleaned[str(game_id)] = team.strip()
    return cleaned


def save_picks(store, user_id, week, picks, now=None):
    """
    Save a batch of picks for one user and week.

    Raises:
        ValidationError: the week has no games or the payload is malformed
        PicksLockedError: the week's first game has already started
        NotFoundError: the user or one of the games does not exist
    """
    picks = validate_picks_payload(picks)

    first_game_time = store.get_first_game_time(week)
    if first_game_time is None:
        raise ValidationError("Invalid week or no games found.")

    if is_week_locked(first_game_time, now):
        logger.info(f"Rejected picks from user {user_id}: week {week} is locked")
        raise PicksLockedError("Picks are locked for this week.")

    if store.get_user(user_id) is None:
        raise NotFoundError("User not found")

    unknown = sorted(set(picks) - store.get_week_game_codes(week))
    if unknown:
        raise NotFoundError(
            f"Game not found for week {week}", payload={"gameIds": unknown}
        )

    saved = store.save_picks(user_id, week, picks)
    logger.info(f"Saved {saved} picks for user {user_id} week {week}")
    return saved
