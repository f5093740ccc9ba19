import os
import warnings

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "pickem_db"
            db_user = os.environ.get("DB_USER") or "pickem_user"
            db_password = os.environ.get("DB_PASSWORD") or "pickem_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "pickem.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API-Sports (American football) configuration
    API_SPORTS_KEY = os.environ.get("API_SPORTS_KEY")
    API_SPORTS_BASE_URL = (
        os.environ.get("API_SPORTS_BASE_URL")
        or "https://v1.american-football.api-sports.io"
    )
    API_SPORTS_LEAGUE = int(os.environ.get("API_SPORTS_LEAGUE") or 1)  # 1 = NFL
    API_SPORTS_TIMEOUT = float(os.environ.get("API_SPORTS_TIMEOUT") or 30)

    # Results ingestion
    RESULTS_SEASON = int(os.environ.get("RESULTS_SEASON") or 2025)
    SYNC_WEEKS = int(os.environ.get("SYNC_WEEKS") or 18)
    TIMEZONE = os.environ.get("TIMEZONE", "UTC")  # Default to UTC if not specified

    # Scheduler configuration (Tuesday and Friday mornings by default)
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "True").lower() == "true"
    RESULTS_SYNC_DAYS = os.environ.get("RESULTS_SYNC_DAYS", "tue,fri")
    RESULTS_SYNC_HOUR = int(os.environ.get("RESULTS_SYNC_HOUR") or 8)

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = True
    UPDATE_GAMES_RATE_LIMIT = os.environ.get(
        "UPDATE_GAMES_RATE_LIMIT", "10 per hour"
    )

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"


class ProductionConfig(Config):
    """Production configuration"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("API_SPORTS_KEY"):
            warnings.warn(
                "PRODUCTION WARNING: API_SPORTS_KEY not set! "
                "Scheduled result updates will fail.",
                UserWarning,
            )
        if not os.environ.get("DATABASE_URL") and os.environ.get(
            "DB_TYPE", "sqlite"
        ).lower() == "sqlite":
            warnings.warn(
                "PRODUCTION WARNING: running on the SQLite fallback database.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    SCHEDULER_ENABLED = False
    RATELIMIT_ENABLED = False
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    API_SPORTS_KEY = "test-key"

    def __init__(self):
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
