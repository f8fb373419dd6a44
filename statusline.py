#!/usr/bin/env python3
"""
Claude Code status line showing git repository state.

- Reads the hook's JSON from stdin ({"cwd": ...} or {"workspace": {"current_dir": ...}})
- Falls back to the process's working directory when stdin has nothing usable
- Collects branch, ahead/behind and dirty state via statusline_git
- Prints exactly one line, e.g. "myproject on ⎇ main ↑2 ↓1"

The branch icon is green when clean, yellow with tracked changes and red when
untracked files exist. Set STATUSLINE_NO_COLOR=1 (or NO_COLOR) for plain text.

Example:
  echo '{"cwd": "/path/to/repo"}' | python statusline.py
"""
import argparse
import json
import logging
import os
import sys
from importlib.metadata import PackageNotFoundError, version as package_version

from statusline_config import load_settings, setup_logging
from statusline_git import RepoInfo, collect

logger = logging.getLogger(__name__)

COL_GREEN = "38;5;82"
COL_YELLOW = "38;5;220"
COL_RED = "38;5;196"
ESC = "\x1b"
MAX_BRANCH_LEN = 48
BRANCH_ICON = "⎇"


def get_version() -> str:
    try:
        return package_version('statusline')
    except PackageNotFoundError:
        return 'dev'


def supports_color() -> bool:
    return not load_settings().no_color


def colorize(text, color, enabled=None):
    if enabled is None:
        enabled = supports_color()
    if not enabled:
        return text
    return f"{ESC}[{color}m{text}{ESC}[0m"


def colorize_bold(text, color, enabled=None):
    if enabled is None:
        enabled = supports_color()
    if not enabled:
        return text
    return f"{ESC}[1;{color}m{text}{ESC}[0m"


def shorten(text, max_len):
    """Trim text to max_len characters, ending in '...' when cut"""
    if max_len <= 4 or len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def render(info: RepoInfo, use_color=None) -> str:
    """Format a RepoInfo as the one-line status"""
    if not info.is_git:
        return info.project
    if use_color is None:
        use_color = supports_color()

    # Untracked files outrank tracked changes
    icon_color = COL_GREEN
    if info.has_untracked:
        icon_color = COL_RED
    elif info.has_tracked:
        icon_color = COL_YELLOW
    icon = colorize_bold(BRANCH_ICON, icon_color, use_color)

    arrows = ""
    if info.ahead > 0:
        arrows += " " + colorize(f"↑{info.ahead}", COL_GREEN, use_color)
    if info.behind > 0:
        arrows += " " + colorize(f"↓{info.behind}", COL_RED, use_color)

    return f"{info.project} on {icon} {shorten(info.branch, MAX_BRANCH_LEN)}{arrows}"


def read_cwd(stream) -> str:
    """Pull the working directory out of the hook's JSON payload"""
    try:
        raw = stream.read()
        if not raw or not raw.strip():
            return ''
        data = json.loads(raw)
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError alike
        logger.debug("ignoring unparsable stdin payload: %s", e)
        return ''
    if not isinstance(data, dict):
        return ''

    cwd = data.get('cwd')
    if isinstance(cwd, str) and cwd.strip():
        return cwd.strip()

    # Claude Code also nests it under workspace
    workspace = data.get('workspace')
    if isinstance(workspace, dict):
        current_dir = workspace.get('current_dir')
        if isinstance(current_dir, str):
            return current_dir.strip()
    return ''


def resolve_cwd(stream) -> str:
    """stdin payload first, then the process's own working directory"""
    cwd = ''
    if stream is not None and not stream.isatty():
        cwd = read_cwd(stream)
    if cwd:
        return cwd
    try:
        return os.getcwd()
    except OSError as e:
        logger.debug("working directory unavailable: %s", e)
        return '.'


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print a one-line git status for a prompt or status bar')
    parser.add_argument('-v', '--version', action='store_true', help='Show version and exit')
    parser.add_argument('--no-color', action='store_true', help='Plain text output (same as STATUSLINE_NO_COLOR=1)')
    parser.add_argument('--debug', action='store_true', help='Log git calls to stderr (same as STATUSLINE_DEBUG=1)')

    args = parser.parse_args(argv)

    settings = load_settings()
    settings.no_color = settings.no_color or args.no_color
    settings.debug = settings.debug or args.debug

    setup_logging(settings.debug)

    if args.version:
        print(f"statusline {get_version()} (built: {settings.build})")
        return 0

    cwd = resolve_cwd(sys.stdin)
    print(render(collect(cwd, settings), use_color=not settings.no_color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
