from pickem import create_app, db
from pickem.models import Game, GameResult, User, UserPick, Week, WeekPicksStatus

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Week": Week,
        "Game": Game,
        "GameResult": GameResult,
        "UserPick": UserPick,
        "WeekPicksStatus": WeekPicksStatus,
    }


if __name__ == "__main__":
    # Reloader would start a second scheduler
    app.run(host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False), use_reloader=False)
