"""
Scoring helpers for the Weekly Pick'em application

Pick correctness is decided here rather than in SQL so every storage
adapter grades picks the same way.
"""


def normalize_team(name):
    """Lowercase and trim a team name for comparison"""
    if name is None:
        return ""
    return str(name).strip().lower()


def compute_winner(home_team, away_team, home_score, away_score):
    """
    Return the name of the team with the strictly higher score.

    Returns None on a tie or when either score is missing.
    """
    if home_score is None or away_score is None:
        return None

    if home_score > away_score:
        return home_team
    if away_score > home_score:
        return away_team
    return None


def is_pick_correct(picked_team, winner_team):
    """
    Grade a single pick.

    Returns True/False when the game has a winner, None when it does not.
    """
    if winner_team is None:
        return None
    return normalize_team(picked_team) == normalize_team(winner_team)
