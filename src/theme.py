"""Color & style helpers.

Decisions:
- Truecolor preferred; falls back to 256-color cube if unsupported.
- Disables automatically when not a TTY unless FORCE_COLOR=1.
- Honors NO_COLOR for complete disable.
- Supports palette overrides via environment or project .env file.
"""
from __future__ import annotations
import os, sys
from typing import Dict

from config import read_dotenv

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

def _code(part: str) -> str:
    """Generate ANSI escape code for a given style part."""
    return f"\033[{part}m" if _ENABLE else ''

def _hex_to_rgb(hex_code: str) -> tuple[int,int,int]:
    h = hex_code.lstrip('#')
    return int(h[0:2],16), int(h[2:4],16), int(h[4:6],16)

def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    return f"\033[38;5;{16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)}m"

def _from_hex(hex_code: str) -> str:
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)

def _valid_hex(value: str) -> bool:
    h = value.lstrip('#')
    return len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h)

RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')
STRIKE = _code('9')
REVERSE = _code('7')

PALETTE_DEFAULTS: Dict[str, str] = {
    'TODO_PRIMARY': '#476EAE',
    'TODO_ACTIVE': '#48B3AF',
    'TODO_DONE': '#A7E399',
    'TODO_WARN': '#F6C177',
}

def resolve_palette(environ=None, dotenv=None) -> Dict[str, str]:
    """Resolve hex values; priority: real env var > .env override > default."""
    env = os.environ if environ is None else environ
    file_values = read_dotenv() if dotenv is None else dotenv
    palette: Dict[str, str] = {}
    for key, default in PALETTE_DEFAULTS.items():
        chosen = default
        for candidate in (env.get(key), file_values.get(key)):
            if candidate and _valid_hex(candidate):
                chosen = '#' + candidate.lstrip('#')
                break
        palette[key] = chosen
    return palette

_PALETTE = resolve_palette()

PRIMARY = _from_hex(_PALETTE['TODO_PRIMARY'])
C_ACTIVE = _from_hex(_PALETTE['TODO_ACTIVE'])
C_DONE = _from_hex(_PALETTE['TODO_DONE'])
C_WARN = _from_hex(_PALETTE['TODO_WARN'])

HEADER_COLOR = PRIMARY
ID_COLOR = PRIMARY + BOLD
EMPTY_COLOR = DIM + PRIMARY
FILTER_ACTIVE_COLOR = PRIMARY + BOLD + REVERSE
TASK_COLOR = C_ACTIVE
DONE_COLOR = C_DONE + STRIKE
FADING_COLOR = DIM
SEVERITY_COLOR = {
    'info': PRIMARY,
    'warn': C_WARN + BOLD,
}

def color(text: str, *styles: str) -> str:
    """Apply ANSI styles to a given text."""
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET

__all__ = [
    'color','RESET','BOLD','DIM','HEADER_COLOR','ID_COLOR','EMPTY_COLOR','FILTER_ACTIVE_COLOR',
    'TASK_COLOR','DONE_COLOR','FADING_COLOR','SEVERITY_COLOR','resolve_palette',
]
