"""Application configuration loaded from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings:
    # SQLite DB URL
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'lodge_ledger.db'}"
    )

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")

    # CORS
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
    ]

    # Directory for raw CSV backups of every imported file
    RAW_BACKUP_DIR: Path = Path(
        os.getenv("RAW_BACKUP_DIR", str(BASE_DIR / "data" / "raw_backup"))
    )

    # Max warning / error strings kept on each import log
    IMPORT_LOG_CAP: int = int(os.getenv("IMPORT_LOG_CAP", "100"))

    # Extra attempts for a ledger write that hits a transient DB error
    IMPORT_WRITE_RETRIES: int = int(os.getenv("IMPORT_WRITE_RETRIES", "0"))

    def __init__(self):
        self.RAW_BACKUP_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
