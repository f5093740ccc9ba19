"""
Game result ingestion from API-Sports (American football).

Pulls a season week by week, upserts one ``game_results`` row per fixture
and grades the picks on every game that has an outcome. A failure on one
week or one game is logged and skipped; the run carries on.
"""

import logging
import threading
from datetime import datetime, timezone

import requests

from pickem.errors import PickemError, SyncAlreadyRunning
from pickem.storage.base import GameResultData
from pickem.utils.timezone_utils import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://v1.american-football.api-sports.io"


def _parse_score(entry):
    """Scores arrive as {"total": n, ...}, a bare number, or nothing"""
    if isinstance(entry, dict):
        entry = entry.get("total")
    if entry is None or entry == "":
        return None
    try:
        return int(entry)
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_kickoff(value):
    """Kickoff is either an ISO string or {"timestamp", "date", "time"}"""
    if isinstance(value, dict):
        if value.get("timestamp") is not None:
            return parse_timestamp(value["timestamp"])
        if value.get("date"):
            return parse_timestamp(f"{value['date']}T{value.get('time') or '00:00'}")
        return None
    return parse_timestamp(value)


def _as_dict(value):
    return value if isinstance(value, dict) else {}


class ResultsSync:
    """
    Handles synchronization of game results from the external API
    """

    def __init__(
        self,
        store,
        api_key=None,
        api_base_url=None,
        league=1,
        season=2025,
        weeks=18,
        timeout=30,
        session=None,
    ):
        self.store = store
        self.api_key = api_key
        self.api_base_url = (api_base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self.league = league
        self.season = season
        self.weeks = weeks
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Weekly-Pickem/1.0"})
        if api_key:
            self.session.headers.update({"x-apisports-key": api_key})

        self._run_lock = threading.Lock()
        self.sync_stats = {
            "last_sync": None,
            "total_syncs": 0,
            "successful_syncs": 0,
            "failed_syncs": 0,
            "last_error": None,
            "games_updated": 0,
        }

    @classmethod
    def from_config(cls, config, store, session=None):
        """Build the job from a Flask config mapping"""
        return cls(
            store,
            api_key=config.get("API_SPORTS_KEY"),
            api_base_url=config.get("API_SPORTS_BASE_URL"),
            league=config.get("API_SPORTS_LEAGUE", 1),
            season=config.get("RESULTS_SEASON", 2025),
            weeks=config.get("SYNC_WEEKS", 18),
            timeout=config.get("API_SPORTS_TIMEOUT", 30),
            session=session,
        )

    @property
    def is_running(self):
        return self._run_lock.locked()

    def _make_api_request(self, path, params=None):
        """GET an API-Sports endpoint and return the decoded body"""
        url = f"{self.api_base_url}/{path.lstrip('/')}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()

        # API-Sports reports quota and key problems in the body with a 200
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            logger.warning(f"API-Sports reported errors for {url} {params}: {errors}")

        return data

    def fetch_week_games(self, season, week):
        """
        Fetch one week's fixtures.

        Raises requests exceptions or ValueError on transport or decode
        failures and on a body that is not a JSON object; incomplete
        fixtures are skipped.
        """
        data = self._make_api_request(
            "games", params={"league": self.league, "season": season, "week": week}
        )
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body for week {week}: {data!r:.200}")

        fixtures = data.get("response") or []
        if not isinstance(fixtures, list):
            raise ValueError(f"Unexpected fixture list for week {week}: {fixtures!r:.200}")

        games = []
        for item in fixtures:
            game = self._parse_game(item, week)
            if game is None:
                logger.warning(f"Skipping incomplete fixture in week {week}: {item!r:.200}")
                continue
            games.append(game)

        return games

    def _parse_game(self, item, week):
        if not isinstance(item, dict):
            return None

        fixture = _as_dict(item.get("game") or item.get("fixture"))
        teams = _as_dict(item.get("teams"))
        scores = _as_dict(item.get("scores"))

        game_id = fixture.get("id")
        home_team = _as_dict(teams.get("home")).get("name")
        away_team = _as_dict(teams.get("away")).get("name")

        if not isinstance(game_id, (int, str)) or isinstance(game_id, bool) or game_id == "":
            return None
        if not isinstance(home_team, str) or not isinstance(away_team, str):
            return None
        if not home_team.strip() or not away_team.strip():
            return None

        status = fixture.get("status")
        if isinstance(status, dict):
            status = status.get("short")
        if not isinstance(status, str):
            status = None

        return GameResultData(
            game_id=str(game_id),
            week=week,
            home_team=home_team,
            away_team=away_team,
            home_score=_parse_score(scores.get("home")),
            away_score=_parse_score(scores.get("away")),
            game_date=_parse_kickoff(fixture.get("date")),
            status=status,
        )

    def update_game_results(self, season=None, weeks=None):
        """
        Upsert results for a season and grade picks.

        Args:
            season: season year, defaults to the configured season
            weeks: iterable of week numbers, defaults to 1..SYNC_WEEKS

        Returns:
            dict summary with weeks, games, picks_graded and errors counts

        Raises:
            SyncAlreadyRunning: another run is in flight in this process
        """
        if not self._run_lock.acquire(blocking=False):
            raise SyncAlreadyRunning()

        try:
            return self._run(season or self.season, weeks)
        finally:
            self._run_lock.release()

    def _run(self, season, weeks):
        if not self.api_key:
            logger.error("Results update aborted: API_SPORTS_KEY is not configured")
            self._update_stats(False, error="API_SPORTS_KEY is not configured")
            raise PickemError("Failed to update games")

        weeks = list(weeks) if weeks is not None else list(range(1, self.weeks + 1))
        summary = {"season": season, "weeks": 0, "games": 0, "picks_graded": 0, "errors": 0}

        logger.info(f"Starting results update for {season} season ({len(weeks)} weeks)")

        for week in weeks:
            try:
                games = self.fetch_week_games(season, week)
            except (requests.exceptions.RequestException, ValueError) as e:
                summary["errors"] += 1
                logger.error(f"Error fetching week {week} games: {str(e)}")
                continue
            except Exception as e:
                summary["errors"] += 1
                logger.error(f"Unexpected error reading week {week} games: {e}", exc_info=True)
                continue

            for game in games:
                try:
                    summary["picks_graded"] += self.store.record_game_result(game)
                    summary["games"] += 1
                except Exception as e:
                    summary["errors"] += 1
                    logger.error(
                        f"Error saving result for game {game.game_id}: {str(e)}",
                        exc_info=True,
                    )

            summary["weeks"] += 1

        self._update_stats(
            summary["errors"] == 0,
            games_updated=summary["games"],
            error=f"{summary['errors']} errors" if summary["errors"] else None,
        )
        logger.info(
            f"Results update finished: {summary['games']} games, "
            f"{summary['picks_graded']} picks graded, {summary['errors']} errors"
        )
        return summary

    def _update_stats(self, success, games_updated=0, error=None):
        """Update sync statistics"""
        self.sync_stats["last_sync"] = datetime.now(timezone.utc)
        self.sync_stats["total_syncs"] += 1
        self.sync_stats["games_updated"] += games_updated

        if success:
            self.sync_stats["successful_syncs"] += 1
            self.sync_stats["last_error"] = None
        else:
            self.sync_stats["failed_syncs"] += 1
            self.sync_stats["last_error"] = error
