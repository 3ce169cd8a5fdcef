"""Settings loaded from the environment and an optional project .env file.

Priority: real env var > .env override > default.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / 'data'
DOTENV_PATH = PROJECT_ROOT / '.env'

DEFAULT_STORE_FILE = DATA_DIR / 'store.json'
DEFAULT_LOG_FILE = DATA_DIR / 'todo.log'
DEFAULT_DELETE_DELAY_MS = 240
DEFAULT_LOG_LEVEL = 'WARNING'

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


def truthy(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def read_dotenv(path: Path = DOTENV_PATH) -> Dict[str, str]:
    """Parse KEY=VALUE lines; blank lines and # comments are skipped."""
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    try:
        text = path.read_text()
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return values
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        values[k.strip()] = v.strip().strip('"').strip("'")
    return values


@dataclass
class Settings:
    store_file: Path = DEFAULT_STORE_FILE
    alt_screen: bool = True
    delete_delay_ms: int = DEFAULT_DELETE_DELAY_MS
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path = DEFAULT_LOG_FILE

    @property
    def delete_delay(self) -> float:
        """Fade delay in seconds."""
        return self.delete_delay_ms / 1000.0


def load_settings(environ: Optional[Mapping[str, str]] = None,
                  dotenv: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    file_values = read_dotenv() if dotenv is None else dotenv

    def lookup(key: str) -> Optional[str]:
        return env.get(key) or file_values.get(key)

    settings = Settings()
    store_file = lookup('TODO_STORE_FILE')
    if store_file:
        settings.store_file = Path(store_file).expanduser()
    settings.alt_screen = truthy(lookup('TODO_ALT_SCREEN'), True)
    delay = lookup('TODO_DELETE_DELAY_MS')
    if delay:
        try:
            settings.delete_delay_ms = max(0, int(delay))
        except ValueError:
            logger.warning("Ignoring TODO_DELETE_DELAY_MS=%r (not an integer)", delay)
    level = (lookup('TODO_LOG_LEVEL') or '').upper()
    if level in LOG_LEVELS:
        settings.log_level = level
    elif level:
        logger.warning("Ignoring unknown TODO_LOG_LEVEL=%r", level)
    log_file = lookup('TODO_LOG_FILE')
    if log_file:
        settings.log_file = Path(log_file).expanduser()
    return settings
