# src/phplan/settings.py
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Load .env for CLI, app, notebooks
load_dotenv(find_dotenv(usecwd=True), override=False)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    top_roles: int = 5
    display_cap: int = 30
    max_ephfs: int = 3
    max_pas: int = 6
    bucket_policy: str = "checkmark_threshold"


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def load_settings() -> Settings:
    """Read PHPLAN_* environment variables (after .env) into a Settings value."""
    d = Settings()
    return Settings(
        data_dir=Path(os.getenv("PHPLAN_DATA_DIR") or d.data_dir),
        log_level=(os.getenv("PHPLAN_LOG_LEVEL") or d.log_level).strip().upper(),
        top_roles=_env_int("PHPLAN_TOP_ROLES", d.top_roles),
        display_cap=_env_int("PHPLAN_DISPLAY_CAP", d.display_cap),
        max_ephfs=_env_int("PHPLAN_MAX_EPHFS", d.max_ephfs),
        max_pas=_env_int("PHPLAN_MAX_PAS", d.max_pas),
        bucket_policy=(os.getenv("PHPLAN_BUCKET_POLICY") or d.bucket_policy).strip().lower(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once, for entry points only."""
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
