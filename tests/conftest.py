from datetime import datetime, timedelta, timezone

import pytest
import requests

from pickem import create_app, db
from pickem.models import Game, User, UserPick, Week


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["pickem_store"]


@pytest.fixture
def make_week(app):
    """Create a week and its games: games are (code, home, away, kickoff)"""

    def _make(week_id, start_date, games=()):
        db.session.add(Week(id=week_id, start_date=start_date))
        for code, home, away, kickoff in games:
            db.session.add(
                Game(
                    game_code=code,
                    week_id=week_id,
                    home_team=home,
                    away_team=away,
                    game_date=kickoff,
                )
            )
        db.session.commit()

    return _make


@pytest.fixture
def make_user(app):
    def _make(username):
        user = User(username=username)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_pick(app):
    def _make(user, week, game_id, team, is_correct=None):
        pick = UserPick(
            user_id=user.id,
            week=week,
            game_id=game_id,
            picked_team=team,
            is_correct=is_correct,
        )
        db.session.add(pick)
        db.session.commit()
        return pick

    return _make


@pytest.fixture
def open_week(make_week):
    """Week 1 whose first game is two days out"""
    kickoff = utcnow() + timedelta(days=2)
    make_week(
        1,
        kickoff - timedelta(days=1),
        games=[
            ("101", "Philadelphia Eagles", "Dallas Cowboys", kickoff),
            ("102", "Los Angeles Chargers", "Kansas City Chiefs", kickoff + timedelta(days=1)),
        ],
    )
    return kickoff


@pytest.fixture
def locked_week(make_week):
    """Week 2 whose first game kicked off an hour ago"""
    kickoff = utcnow() - timedelta(hours=1)
    make_week(
        2,
        kickoff - timedelta(days=1),
        games=[
            ("201", "Green Bay Packers", "Detroit Lions", kickoff),
            ("202", "Buffalo Bills", "Miami Dolphins", kickoff + timedelta(days=3)),
        ],
    )
    return kickoff


def api_game(game_id, home, away, home_total=None, away_total=None, status="FT"):
    """One fixture as returned by the API-Sports /games endpoint"""
    return {
        "game": {
            "id": game_id,
            "date": {"timezone": "UTC", "date": "2025-09-05", "time": "00:20", "timestamp": 1757031600},
            "status": {"short": status, "long": "Finished"},
        },
        "teams": {"home": {"id": 1, "name": home}, "away": {"id": 2, "name": away}},
        "scores": {"home": {"total": home_total}, "away": {"total": away_total}},
    }


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for requests.Session; pages map week -> payload or exception"""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.headers = {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        page = self.pages.get(params["week"], {"response": []})
        if isinstance(page, Exception):
            raise page
        if isinstance(page, FakeResponse):
            return page
        return FakeResponse(page)


@pytest.fixture
def fake_api():
    return FakeSession()


@pytest.fixture
def results_sync(app, store, fake_api):
    """ResultsSync wired to the fake API and installed on the app"""
    from pickem.services.results_sync import ResultsSync

    sync = ResultsSync(store, api_key="test-key", weeks=2, session=fake_api)
    app.extensions["results_sync"] = sync
    return sync
