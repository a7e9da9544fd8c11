# chefbot/config.py
from __future__ import annotations

import os
from datetime import timedelta

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env locally (no-op when the file is absent)
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    llm_enabled: bool = _flag("LLM_ENABLED", "1")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "").strip()
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    restaurant_name: str = os.getenv("RESTAURANT_NAME", "Nosso Restaurante")
    restaurant_phone: str = os.getenv("RESTAURANT_PHONE", "+55 11 99999-9999")
    restaurant_address: str = os.getenv("RESTAURANT_ADDRESS", "São Paulo, SP")
    pix_key: str = os.getenv("PIX_KEY", "restaurant@email.com")
    currency: str = os.getenv("CURRENCY", "BRL")

    menu_path: str = os.getenv("MENU_PATH", "")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./chefbot.db")

    session_max_age_minutes: int = _int("SESSION_MAX_AGE_MINUTES", 60)
    sweep_interval_seconds: int = _int("SWEEP_INTERVAL_SECONDS", 300)

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    telegram_bot_username: str = os.getenv("TELEGRAM_BOT_USERNAME", "restaurant_bot")

    @property
    def session_max_age(self) -> timedelta:
        return timedelta(minutes=self.session_max_age_minutes)

    @property
    def llm_available(self) -> bool:
        return bool(self.llm_enabled and self.openai_api_key)


settings = Settings()
