import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    database_url: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./pos.db"
    )
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    # Seconds a writer waits for the SQLite write lock before giving up
    sqlite_busy_timeout: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "5"))

    # Stock quantities are fixed-point; money is always 2 places
    stock_decimal_places: int = int(os.getenv("STOCK_DECIMAL_PLACES", "3"))
    money_decimal_places: int = 2

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json: bool = os.getenv("LOG_JSON", "True").lower() == "true"


settings = Settings()
