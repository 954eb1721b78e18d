import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _default_sqlite_uri() -> str:
    instance_path = BASE_DIR / "instance"
    instance_path.mkdir(exist_ok=True)
    return f"sqlite:///{instance_path / 'reelscript.db'}"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    try:
        return float(raw) if raw is not None else default
    except ValueError:
        return default


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", _default_sqlite_uri())
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_TIME_LIMIT = None
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    SCRIPT_MODEL = os.environ.get("SCRIPT_MODEL", "gpt-5.2-2025-12-11")
    SUB_PILLAR_MODEL = os.environ.get("SUB_PILLAR_MODEL", "gpt-5-mini-2025-08-07")
    TITLE_MODEL = os.environ.get("TITLE_MODEL", "gpt-4.1-nano-2025-04-14")

    SCRIPT_MAX_ATTEMPTS = _env_int("SCRIPT_MAX_ATTEMPTS", 3)
    AUTOMATIC_SCRIPT_MAX_ATTEMPTS = _env_int("AUTOMATIC_SCRIPT_MAX_ATTEMPTS", 4)
    SUB_PILLAR_MAX_ATTEMPTS = _env_int("SUB_PILLAR_MAX_ATTEMPTS", 3)
    GENERATION_RETRY_DELAY = _env_float("GENERATION_RETRY_DELAY", 1.0)
    GENERATION_TEMPERATURE = _env_float("GENERATION_TEMPERATURE", 1.0)

    CHAT_HISTORY_WINDOW = _env_int("CHAT_HISTORY_WINDOW", 3)
    CHAT_DEFAULT_TEMPERATURE = 0.7
    CHAT_DEFAULT_MAX_TOKENS = 2048


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    OPENAI_API_KEY = ""
    GENERATION_RETRY_DELAY = 0.0
