"""
Interpreter configuration.
Reads settings from environment variables with sensible defaults.
"""

import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() not in ('0', 'false', 'no', 'off', '')


class Settings:
    """Settings loaded from environment variables."""

    def __init__(self):
        # Flat file holding the persisted tables between runs
        self.DATABASE_FILE: str = os.environ.get("FLATSQL_DATABASE", "database.txt")

        # Script read by the batch runner when no file is given
        self.INPUT_FILE: str = os.environ.get("FLATSQL_INPUT", "input.sql")

        # Level name understood by logging (DEBUG, INFO, WARNING, ...)
        self.LOG_LEVEL: str = os.environ.get("FLATSQL_LOG_LEVEL", "WARNING").upper()

        # Guard the database file with a lock file while it is open
        self.USE_LOCK: bool = _env_flag("FLATSQL_LOCK", "1")

        # HTTP console host and port (uvicorn binds to this)
        self.HOST: str = os.environ.get("FLATSQL_HOST", "127.0.0.1")
        self.PORT: int = int(os.environ.get("FLATSQL_PORT", "8000"))


settings = Settings()
