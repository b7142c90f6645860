import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_db_path() -> Path:
    env = os.getenv("AUTOBLOCK_SCORES_DB_PATH")
    if env:
        return Path(env).expanduser()
    if os.name == "nt":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "AutoblockScores" / "autoblock_scores.db"
    return Path.home() / ".autoblock_scores" / "autoblock_scores.db"


@dataclass(frozen=True)
class Settings:
    db_path: Path = field(default_factory=_default_db_path)
    backend: str = field(default_factory=lambda: os.getenv("AUTOBLOCK_SCORES_BACKEND", "sqlite"))
    rules_var: str = field(default_factory=lambda: os.getenv("AUTOBLOCK_SCORES_RULES_VAR", "users_autoblocks"))
    busy_timeout_ms: int = field(default_factory=lambda: int(os.getenv("AUTOBLOCK_SCORES_BUSY_TIMEOUT_MS", "5000")))


_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
