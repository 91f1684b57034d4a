import os
from typing import Optional
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv(".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Setting(BaseModel):
    app_name: str = os.getenv("APP_NAME", "Fintech Ledger API")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    create_schema: bool = _flag("CREATE_SCHEMA", "true")

    oltp_user: str = os.getenv("OLTP_USER", "app")
    oltp_password: str = os.getenv("OLTP_PASSWORD", "app_password")
    oltp_db: str = os.getenv("OLTP_DB", "fintech_oltp")
    oltp_port: int = int(os.getenv("OLTP_PORT", "5432"))
    oltp_host: str = os.getenv("OLTP_HOST", "localhost")
    database_url_override: Optional[str] = os.getenv("DATABASE_URL")

    transactions_default_limit: int = int(os.getenv("TRANSACTIONS_DEFAULT_LIMIT", "50"))
    transactions_max_limit: int = int(os.getenv("TRANSACTIONS_MAX_LIMIT", "200"))

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+psycopg://{self.oltp_user}:{self.oltp_password}@{self.oltp_host}:{self.oltp_port}/{self.oltp_db}"

settings = Setting()
