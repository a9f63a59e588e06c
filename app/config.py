import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel
from sqlalchemy.engine import URL

# Force-load .env (Windows-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

LIVE_BASE_URL = "https://api-m.paypal.com"
SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"

DEFAULT_CORS_ORIGINS = [
    "https://esoftwaresolution.online",
    "http://esoftwaresolution.online",
    "https://www.esoftwaresolution.online",
]


class CaptureMode(str, Enum):
    FINAL = "final"      # {"final_capture": true}, full authorized amount
    AMOUNT = "amount"    # declared amount/currency in the capture body


class Settings(BaseModel):
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_mode: str = "sandbox"
    capture_mode: CaptureMode = CaptureMode.FINAL
    port: int = 10000
    database_url: Optional[str] = None
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def paypal_base_url(self) -> str:
        return LIVE_BASE_URL if self.paypal_mode == "live" else SANDBOX_BASE_URL

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            paypal_client_id=os.getenv("PAYPAL_CLIENT_ID", ""),
            paypal_client_secret=os.getenv("PAYPAL_CLIENT_SECRET", ""),
            paypal_mode=os.getenv("PAYPAL_MODE", "sandbox"),
            capture_mode=os.getenv("PAYPAL_CAPTURE_MODE", CaptureMode.FINAL.value),
            port=int(os.getenv("PORT", "10000")),
            database_url=database_url_from_env(),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins else DEFAULT_CORS_ORIGINS
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
        )


def database_url_from_env() -> Optional[str]:
    """DATABASE_URL wins; otherwise build one from the DB_* parts, if any."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    host = os.getenv("DB_HOST")
    if not host:
        return None

    port = os.getenv("DB_PORT")
    return URL.create(
        os.getenv("DB_DRIVER", "mysql+pymysql"),
        username=os.getenv("DB_USER"),
        password=os.getenv("DB_PASSWORD"),
        host=host,
        port=int(port) if port else None,
        database=os.getenv("DB_NAME"),
    ).render_as_string(hide_password=False)
