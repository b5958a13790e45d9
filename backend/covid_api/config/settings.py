"""
Runtime settings for the Kosovo COVID-19 API.

Every value is read from the environment once, at import time.
"""
import os
from pathlib import Path

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").lower()

# Database
DB_NAME = os.environ.get("DB_NAME", "kosovo_covid_db")
DATABASE_PATH = Path(
    os.environ.get("DATABASE_PATH", str(Path(__file__).parent.parent.parent / f"{DB_NAME}.db"))
)
DB_QUERY_TIMEOUT = int(os.environ.get("DB_QUERY_TIMEOUT", "30"))
DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "10"))
INIT_DB_ON_STARTUP = os.environ.get("INIT_DB_ON_STARTUP", "true").lower() == "true"

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
ENABLE_DOCS = os.environ.get("ENABLE_DOCS", "true").lower() == "true"
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

# Rate limiting
RATE_LIMIT_ENABLED = os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_WINDOW_MS = int(os.environ.get("RATE_LIMIT_WINDOW_MS", "900000"))
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "100"))

# Automation
ENABLE_AUTO_UPDATES = os.environ.get("ENABLE_AUTO_UPDATES", "false").lower() == "true"
AUTO_UPDATE_CRON = os.environ.get("AUTO_UPDATE_CRON", "*/30 * * * *")
AUTOMATION_TIMEZONE = os.environ.get("AUTOMATION_TIMEZONE") or None

# External sources, recorded on data_sources rows but never fetched
WHO_DATA_URL = os.environ.get("WHO_DATA_URL", "https://covid19.who.int/WHO-COVID-19-global-data.csv")
DISEASE_SH_URL = os.environ.get("DISEASE_SH_URL", "https://disease.sh/v3/covid-19/countries/kosovo")
MOH_URL = os.environ.get("MOH_URL", "https://msh.rks-gov.net")


def is_production() -> bool:
    return ENVIRONMENT == "production"


def rate_limit_string() -> str:
    """Translate the window/max pair into a slowapi limit string."""
    window_seconds = max(1, RATE_LIMIT_WINDOW_MS // 1000)
    return f"{RATE_LIMIT_MAX_REQUESTS}/{window_seconds} seconds"


def cors_origins() -> list[str]:
    return [origin.strip() for origin in CORS_ORIGINS.split(",") if origin.strip()]
