from datetime import datetime, timezone

import pytest
import requests
from sqlalchemy.exc import OperationalError

from conftest import FakeResponse, api_game
from pickem.errors import PickemError, SyncAlreadyRunning
from pickem.models import GameResult, UserPick
from pickem.services.results_sync import ResultsSync


def test_fetch_week_games_parses_fixtures(results_sync, fake_api):
    fake_api.pages[1] = {
        "errors": [],
        "response": [
            api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 20),
            api_game(102, "Los Angeles Chargers", "Kansas City Chiefs", None, None, status="NS"),
        ],
    }

    games = results_sync.fetch_week_games(2025, 1)

    assert [g.game_id for g in games] == ["101", "102"]
    assert games[0].winner_team == "Philadelphia Eagles"
    assert games[0].is_final is True
    assert games[0].game_date == datetime(2025, 9, 5, 0, 20, tzinfo=timezone.utc)
    assert games[1].home_score is None
    assert games[1].winner_team is None
    assert games[1].is_final is False

    call = fake_api.calls[0]
    assert call["url"] == "https://v1.american-football.api-sports.io/games"
    assert call["params"] == {"league": 1, "season": 2025, "week": 1}
    assert fake_api.headers["x-apisports-key"] == "test-key"


def test_fetch_skips_incomplete_fixtures(results_sync, fake_api):
    fake_api.pages[1] = {
        "response": [
            {"game": {"id": 5}, "teams": {"home": {"name": "Bears"}}},
            {"teams": {"home": {"name": "Bears"}, "away": {"name": "Vikings"}}},
            "garbage",
            api_game(7, "Bears", "Vikings", 10, 3),
        ]
    }

    games = results_sync.fetch_week_games(2025, 1)
    assert [g.game_id for g in games] == ["7"]


def test_fetch_accepts_fixture_key_and_iso_dates(results_sync, fake_api):
    fake_api.pages[1] = {
        "response": [
            {
                "fixture": {"id": 9, "date": "2025-09-07T17:00:00Z"},
                "teams": {"home": {"name": "Jets"}, "away": {"name": "Steelers"}},
                "scores": {"home": {"total": "31"}, "away": {"total": 34}},
            }
        ]
    }

    (game,) = results_sync.fetch_week_games(2025, 1)
    assert game.game_id == "9"
    assert game.home_score == 31
    assert game.winner_team == "Steelers"
    assert game.game_date == datetime(2025, 9, 7, 17, 0, tzinfo=timezone.utc)


def test_update_is_idempotent(results_sync, fake_api):
    fake_api.pages[1] = {"response": [api_game(101, "Eagles", "Cowboys", 24, 20)]}

    results_sync.update_game_results(2025)
    fake_api.pages[1] = {"response": [api_game(101, "Eagles", "Cowboys", 24, 27)]}
    summary = results_sync.update_game_results(2025)

    assert summary["games"] == 1
    assert summary["weeks"] == 2
    rows = GameResult.query.all()
    assert len(rows) == 1
    assert (rows[0].home_score, rows[0].away_score) == (24, 27)
    assert rows[0].winner_team == "Cowboys"
    assert rows[0].week == 1


def test_update_grades_right_and_wrong_picks(
    results_sync, fake_api, open_week, make_user, make_pick
):
    alice = make_user("alice")
    bob = make_user("bob")
    make_pick(alice, 1, "101", "  philadelphia eagles ")
    make_pick(bob, 1, "101", "Dallas Cowboys")
    make_pick(bob, 1, "102", "Kansas City Chiefs")

    fake_api.pages[1] = {
        "response": [
            api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 20),
            api_game(102, "Los Angeles Chargers", "Kansas City Chiefs", 7, 3, status="Q2"),
        ]
    }
    summary = results_sync.update_game_results(2025, weeks=[1])

    picks = {(p.user_id, p.game_id): p.is_correct for p in UserPick.query.all()}
    assert picks[(alice.id, "101")] is True
    assert picks[(bob.id, "101")] is False
    # Leader at half time still grades by current winner
    assert picks[(bob.id, "102")] is False
    assert summary["picks_graded"] == 3


def test_score_correction_flips_grading(results_sync, fake_api, open_week, make_user, make_pick):
    alice = make_user("alice")
    make_pick(alice, 1, "101", "Dallas Cowboys")

    fake_api.pages[1] = {"response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 20)]}
    results_sync.update_game_results(2025, weeks=[1])
    assert UserPick.query.one().is_correct is False

    fake_api.pages[1] = {"response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 27)]}
    results_sync.update_game_results(2025, weeks=[1])
    assert UserPick.query.one().is_correct is True


def test_level_score_mid_game_clears_earlier_grade(
    results_sync, fake_api, open_week, make_user, make_pick
):
    alice = make_user("alice")
    make_pick(alice, 1, "101", "Philadelphia Eagles")

    fake_api.pages[1] = {
        "response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 20, status="Q4")]
    }
    results_sync.update_game_results(2025, weeks=[1])
    assert UserPick.query.one().is_correct is True

    fake_api.pages[1] = {
        "response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 24, status="Q4")]
    }
    results_sync.update_game_results(2025, weeks=[1])

    assert GameResult.query.one().winner_team is None
    assert UserPick.query.one().is_correct is None


def test_tied_game_is_never_correct(results_sync, fake_api, open_week, make_user, make_pick):
    alice = make_user("alice")
    bob = make_user("bob")
    make_pick(alice, 1, "101", "Philadelphia Eagles")
    make_pick(bob, 1, "101", "Dallas Cowboys")

    fake_api.pages[1] = {"response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", 24, 24)]}
    results_sync.update_game_results(2025, weeks=[1])

    assert GameResult.query.one().winner_team is None
    assert [p.is_correct for p in UserPick.query.all()] == [False, False]


def test_missing_scores_leave_picks_ungraded(results_sync, fake_api, open_week, make_user, make_pick):
    alice = make_user("alice")
    make_pick(alice, 1, "101", "Philadelphia Eagles")

    fake_api.pages[1] = {
        "response": [api_game(101, "Philadelphia Eagles", "Dallas Cowboys", None, None, status="NS")]
    }
    results_sync.update_game_results(2025, weeks=[1])

    result = GameResult.query.one()
    assert result.winner_team is None
    assert result.home_score is None
    assert UserPick.query.one().is_correct is None


def _far_future_kickoff():
    game = api_game(101, "Eagles", "Cowboys", 24, 20)
    game["game"]["date"]["timestamp"] = 10**20
    return {"response": [game]}


@pytest.mark.parametrize(
    "page",
    [
        [api_game(101, "Eagles", "Cowboys", 24, 20)],
        {"response": [{"game": 5, "teams": {"home": {"name": "Eagles"}, "away": {"name": "Cowboys"}}}]},
        {"response": [{"game": {"id": 101}, "teams": {"home": "Eagles", "away": "Cowboys"}}]},
        {"response": {"game": {"id": 101}}},
        _far_future_kickoff(),
    ],
    ids=["top-level-list", "scalar-game", "string-teams", "response-object", "epoch-overflow"],
)
def test_malformed_week_does_not_stop_the_run(results_sync, fake_api, page):
    fake_api.pages[1] = page
    fake_api.pages[2] = {"response": [api_game(201, "Packers", "Lions", 13, 10)]}

    summary = results_sync.update_game_results(2025)

    assert summary["weeks"] + summary["errors"] == 2
    assert "201" in {r.game_id for r in GameResult.query.all()}
    assert results_sync.sync_stats["total_syncs"] == 1
    assert results_sync.is_running is False


def test_unreadable_kickoff_is_stored_without_date(results_sync, fake_api):
    fake_api.pages[1] = _far_future_kickoff()

    summary = results_sync.update_game_results(2025, weeks=[1])

    assert summary["errors"] == 0
    result = GameResult.query.one()
    assert result.game_date is None
    assert result.winner_team == "Eagles"


def test_failed_week_does_not_stop_the_run(results_sync, fake_api):
    fake_api.pages[1] = requests.exceptions.ConnectionError("boom")
    fake_api.pages[2] = {"response": [api_game(201, "Packers", "Lions", 13, 10)]}

    summary = results_sync.update_game_results(2025)

    assert summary["errors"] == 1
    assert summary["games"] == 1
    assert GameResult.query.one().game_id == "201"
    assert results_sync.sync_stats["failed_syncs"] == 1


def test_http_error_counts_as_failed_week(results_sync, fake_api):
    fake_api.pages[1] = FakeResponse({}, status_code=500)

    summary = results_sync.update_game_results(2025, weeks=[1])
    assert summary == {"season": 2025, "weeks": 0, "games": 0, "picks_graded": 0, "errors": 1}


def test_failed_game_write_does_not_stop_the_run(results_sync, fake_api, store, monkeypatch):
    fake_api.pages[1] = {
        "response": [api_game(1, "A", "B", 1, 0), api_game(2, "C", "D", 1, 0), api_game(3, "E", "F", 0, 1)]
    }
    original = store.record_game_result

    def flaky(result):
        if result.game_id == "2":
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return original(result)

    monkeypatch.setattr(store, "record_game_result", flaky)
    summary = results_sync.update_game_results(2025, weeks=[1])

    assert summary["errors"] == 1
    assert sorted(r.game_id for r in GameResult.query.all()) == ["1", "3"]


def test_concurrent_run_is_refused(results_sync):
    results_sync._run_lock.acquire()
    try:
        assert results_sync.is_running is True
        with pytest.raises(SyncAlreadyRunning):
            results_sync.update_game_results(2025)
    finally:
        results_sync._run_lock.release()

    assert results_sync.is_running is False


def test_missing_api_key_fails_fast(store, fake_api):
    sync = ResultsSync(store, api_key=None, session=fake_api)

    with pytest.raises(PickemError) as excinfo:
        sync.update_game_results(2025)

    assert excinfo.value.message == "Failed to update games"
    assert fake_api.calls == []
    assert sync.sync_stats["failed_syncs"] == 1
    assert sync.sync_stats["last_error"] == "API_SPORTS_KEY is not configured"
    assert sync.is_running is False


def test_from_config_reads_settings(app, store):
    sync = ResultsSync.from_config(app.config, store)
    assert sync.api_key == "test-key"
    assert sync.season == app.config["RESULTS_SEASON"]
    assert sync.weeks == 18
    assert sync.league == 1
