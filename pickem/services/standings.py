"""Read-only leaderboard views and current-week resolution."""

from pickem.utils.timezone_utils import ensure_utc, get_utc_time


def resolve_current_week(week_starts, now=None):
    """
    Pick the current week from (week_id, start_date) pairs sorted by start.

    Returns the latest week that has started, the first week when none has,
    and None when there are no weeks at all.
    """
    if not week_starts:
        return None

    now = ensure_utc(now or get_utc_time())
    current = week_starts[0][0]

    for week_id, start_date in week_starts:
        if now >= ensure_utc(start_date):
            current = week_id
        else:
            break

    return current


def get_current_week(store, now=None):
    return resolve_current_week(store.list_week_starts(), now)


def get_grand_totals(store, week):
    """Correct picks per user over all weeks up to and including ``week``"""
    return store.get_grand_totals(week)


def get_week_pick_details(store, week):
    return store.get_week_pick_details(week)
