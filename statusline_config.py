"""
Environment-driven settings for the statusline tools.

Everything is read from the environment at call time, so a prompt hook can
tune behaviour per shell without any config file:

  STATUSLINE_NO_COLOR=1          plain text output (NO_COLOR is honoured too)
  STATUSLINE_FETCH=1             allow a rate-limited `git fetch` of the upstream
  STATUSLINE_FETCH_INTERVAL=30   minutes between fetches, 0 fetches every run
  STATUSLINE_GIT_TIMEOUT_MS=300  hard timeout for each git call
  STATUSLINE_DEBUG=1             debug logging on stderr
"""
import logging
import os
import sys
from dataclasses import dataclass

DEFAULT_FETCH_INTERVAL_MINUTES = 30
DEFAULT_GIT_TIMEOUT_MS = 300


@dataclass
class Settings:
    no_color: bool = False
    fetch: bool = False
    fetch_interval: float = DEFAULT_FETCH_INTERVAL_MINUTES * 60  # seconds
    git_timeout: float = DEFAULT_GIT_TIMEOUT_MS / 1000  # seconds
    debug: bool = False
    build: str = 'local'


def _parse_int(value, default, minimum=0):
    """Parse a whole number, falling back to default below minimum or on junk"""
    if value is None or value.strip() == '':
        return default
    try:
        number = int(value)
    except ValueError:
        return default
    if number < minimum:
        return default
    return number


def fetch_interval_seconds(environ=None) -> float:
    environ = os.environ if environ is None else environ
    minutes = _parse_int(environ.get('STATUSLINE_FETCH_INTERVAL'), DEFAULT_FETCH_INTERVAL_MINUTES)
    return minutes * 60


def load_settings(environ=None) -> Settings:
    """Build Settings from the environment (os.environ by default)"""
    environ = os.environ if environ is None else environ
    timeout_ms = _parse_int(environ.get('STATUSLINE_GIT_TIMEOUT_MS'), DEFAULT_GIT_TIMEOUT_MS, minimum=1)
    return Settings(
        no_color=environ.get('STATUSLINE_NO_COLOR') == '1' or environ.get('NO_COLOR') is not None,
        fetch=environ.get('STATUSLINE_FETCH') == '1',
        fetch_interval=fetch_interval_seconds(environ),
        git_timeout=timeout_ms / 1000,
        debug=environ.get('STATUSLINE_DEBUG') == '1',
        build=environ.get('STATUSLINE_BUILD') or 'local',
    )


def setup_logging(debug=False):
    """Send log records to stderr; stdout belongs to the status line"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [statusline] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
