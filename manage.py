#!/usr/bin/env python3
"""
Weekly Pick'em Management CLI

Command-line management for the schedule, users and result updates.
"""

import logging
import os

# Management commands never need the background scheduler
os.environ.setdefault("SCHEDULER_ENABLED", "False")

import click  # noqa: E402
from flask import current_app  # noqa: E402
from flask.cli import FlaskGroup, with_appcontext  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # noqa: E402

from pickem import create_app, db, get_results_sync, get_store  # noqa: E402
from pickem.errors import PickemError  # noqa: E402
from pickem.models import Game, GameResult, User, UserPick, Week  # noqa: E402
from pickem.services.standings import get_current_week  # noqa: E402
from pickem.utils.timezone_utils import get_app_timezone, to_naive_utc  # noqa: E402


def _to_utc(dt):
    """Interpret a naive CLI datetime in the configured timezone"""
    app_tz = get_app_timezone(current_app.config.get("TIMEZONE", "UTC"))
    return to_naive_utc(app_tz.localize(dt))


@click.group(cls=FlaskGroup, create_app=create_app, add_default_commands=False)
def cli():
    """Weekly Pick'em Management CLI"""
    pass


# Week Management Commands
@cli.group()
def week():
    """Week management commands"""
    pass


@week.command("add")
@click.argument("week_id", type=int)
@click.argument(
    "start_date", type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%d %H:%M"])
)
@with_appcontext
def add_week(week_id, start_date):
    """Create or move a week (start date in the configured timezone)"""
    try:
        existing = db.session.get(Week, week_id)
        if existing:
            existing.start_date = _to_utc(start_date)
        else:
            db.session.add(Week(id=week_id, start_date=_to_utc(start_date)))

        db.session.commit()
        click.echo(f"✅ Week {week_id} starts {start_date}")

    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error saving week: {str(e)}")
        logging.error(f"Week save failed - SQL error: {e}")


@week.command("list")
@with_appcontext
def list_weeks():
    """List all weeks"""
    weeks = Week.query.order_by(Week.start_date).all()

    if not weeks:
        click.echo("No weeks found.")
        return

    current = get_current_week(get_store())
    click.echo("Weeks:")
    for w in weeks:
        marker = "🟢 CURRENT" if w.id == current else ""
        click.echo(f"  Week {w.id}: starts {w.start_date} UTC {marker}")


# Schedule Commands
@cli.group()
def game():
    """Game schedule commands"""
    pass


@game.command("add")
@click.argument("game_code")
@click.option("--week", "week_id", type=int, required=True, help="Week number")
@click.option("--home", "home_team", required=True, help="Home team name")
@click.option("--away", "away_team", required=True, help="Away team name")
@click.option(
    "--kickoff",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M"]),
    required=True,
    help="Kickoff (YYYY-MM-DD HH:MM) in the configured timezone",
)
@with_appcontext
def add_game(game_code, week_id, home_team, away_team, kickoff):
    """Add or update a scheduled game"""
    try:
        if not db.session.get(Week, week_id):
            click.echo(f"❌ Week {week_id} not found! Create it first.")
            return

        scheduled = Game.query.filter_by(game_code=game_code).first()
        if not scheduled:
            scheduled = Game(game_code=game_code)
            db.session.add(scheduled)

        scheduled.week_id = week_id
        scheduled.home_team = home_team
        scheduled.away_team = away_team
        scheduled.game_date = _to_utc(kickoff)

        db.session.commit()
        click.echo(f"✅ {away_team} @ {home_team} (week {week_id}, {kickoff})")

    except IntegrityError as e:
        db.session.rollback()
        click.echo(f"❌ Invalid game: {str(e.orig)}")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error saving game: {str(e)}")
        logging.error(f"Game save failed - SQL error: {e}")


@game.command("list")
@click.option("--week", "week_id", type=int, help="Only this week")
@with_appcontext
def list_games(week_id):
    """List scheduled games"""
    games = get_store().list_games(week_id)

    if not games:
        click.echo("No games found.")
        return

    for g in games:
        click.echo(
            f"  [{g['game_code']}] Week {g['week_id']}: "
            f"{g['away_team']} @ {g['home_team']} - {g['game_date']}"
        )


# Data Sync Commands
@cli.group()
def sync():
    """Data synchronization commands"""
    pass


@sync.command()
@click.option("--season", type=int, help="Season year (default: RESULTS_SEASON)")
@click.option("--week", "week_id", type=int, help="Only this week")
@with_appcontext
def results(season, week_id):
    """Fetch game results and grade picks"""
    click.echo("Updating game results...")
    try:
        summary = get_results_sync().update_game_results(
            season=season, weeks=[week_id] if week_id else None
        )
        click.echo(
            f"✅ {summary['games']} games updated across {summary['weeks']} weeks, "
            f"{summary['picks_graded']} picks graded"
        )
        if summary["errors"]:
            click.echo(f"⚠️  {summary['errors']} errors - see logs")
    except PickemError as e:
        click.echo(f"❌ {e.message}")


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command("create")
@click.argument("username")
@with_appcontext
def create_user(username):
    """Create a user"""
    try:
        created = get_store().create_user(username.strip())
        click.echo(f"✅ Created user '{created['username']}' (id {created['id']})")
    except PickemError as e:
        click.echo(f"❌ {e.message}")


@user.command("list")
@with_appcontext
def list_users():
    """List all users"""
    users = User.query.order_by(User.created_at.desc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        click.echo(f"  {u.id}: {u.username}")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init")
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 Weekly Pick'em Status")
    click.echo("=" * 40)

    # Database connection
    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    current = get_current_week(get_store())
    if current is not None:
        click.echo(f"✅ Current Week: {current}")
    else:
        click.echo("⚠️  Current Week: no weeks configured")

    click.echo(f"👥 Users: {User.query.count()}")
    click.echo(f"🏈 Games: {Game.query.count()} scheduled, {GameResult.query.count()} with results")

    graded = UserPick.query.filter(UserPick.is_correct.isnot(None)).count()
    click.echo(f"✅ Picks: {graded}/{UserPick.query.count()} graded")

    api_key = current_app.config.get("API_SPORTS_KEY")
    click.echo(f"🔑 API-Sports key: {'configured' if api_key else 'MISSING'}")


if __name__ == "__main__":
    cli()
