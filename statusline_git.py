#!/usr/bin/env python3
"""
statusline_git - Git repository state collector for the status line

- Locates the repository root with `git rev-parse --show-toplevel`
- Optionally fetches the upstream, at most once per STATUSLINE_FETCH_INTERVAL
  minutes (decided from the upstream ref's reflog, nothing is cached here)
- Parses `git status --porcelain=2 --branch` into a small RepoInfo record
- Every git call runs under a short hard timeout; any failure just yields
  empty values so the status line always renders something

Standalone usage (handy when a prompt looks wrong):

  python statusline_git.py /path/to/repo
  python statusline_git.py /path/to/repo --json
"""
import argparse
import json
import logging
import os
import re
import subprocess
import sys
import time
from dataclasses import asdict, dataclass
from typing import NamedTuple

from statusline_config import Settings, load_settings, setup_logging

logger = logging.getLogger(__name__)

# "abc1234 origin/main@{1700000000}: fetch: fast-forward"
_REFLOG_ENTRY = re.compile(r'@\{(\d+)\}:\s*(\S+)')


@dataclass
class RepoInfo:
    project: str = ''
    branch: str = ''
    ahead: int = 0
    behind: int = 0
    has_tracked: bool = False
    has_untracked: bool = False
    is_git: bool = False


class PorcelainStatus(NamedTuple):
    """Fields pulled out of porcelain v2 output"""
    branch: str = ''
    ahead: int = 0
    behind: int = 0
    has_tracked: bool = False
    has_untracked: bool = False


def run_git(cwd, *args, timeout=None) -> str:
    """Run git in cwd and return stripped stdout, or '' on any failure"""
    if timeout is None:
        timeout = load_settings().git_timeout
    logger.debug("git %s in %s", ' '.join(args), cwd)
    try:
        # Branch names and paths are raw bytes to git; undecodable ones render as U+FFFD
        result = subprocess.run(
            ['git', *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            errors='replace',
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.debug("git %s timed out after %.0fms in %s", ' '.join(args), timeout * 1000, cwd)
        return ''
    except OSError as e:
        # git missing, or cwd gone / not a directory
        logger.debug("git %s could not run in %s: %s", ' '.join(args), cwd, e)
        return ''

    if result.returncode != 0:
        logger.debug("git %s exited %d in %s: %s", ' '.join(args), result.returncode, cwd, result.stderr.strip())
        return ''
    return result.stdout.strip()


def parse_signed(text) -> int:
    """Magnitude of a '+N' / '-N' counter; stops at the first non-digit"""
    if not text:
        return 0
    if text[0] in '+-':
        text = text[1:]
    n = 0
    for ch in text:
        if not '0' <= ch <= '9':
            break
        n = n * 10 + (ord(ch) - ord('0'))
    return n


def parse_status(text) -> PorcelainStatus:
    """Parse `git status --porcelain=2 --branch` output.

    Only the pieces the status line shows are kept: branch.head,
    branch.ab, and whether any tracked or untracked entries exist.
    """
    branch = ''
    ahead = behind = 0
    has_tracked = has_untracked = False

    for line in (text or '').split('\n'):
        line = line.strip()
        if not line:
            continue
        if line.startswith('#'):
            if line.startswith('# branch.head '):
                branch = line[len('# branch.head'):].strip()
            elif line.startswith('# branch.ab '):
                fields = line[len('# branch.ab'):].split()
                if len(fields) == 2:
                    ahead = parse_signed(fields[0])
                    behind = parse_signed(fields[1])
            continue
        if line.startswith('? '):
            has_untracked = True
        elif line.startswith(('1 ', '2 ', 'u ')):
            has_tracked = True

    return PorcelainStatus(branch, ahead, behind, has_tracked, has_untracked)


def project_name(path) -> str:
    """Last component of path, like `basename` but tolerant of trailing slashes"""
    if not path:
        return ''
    return os.path.basename(os.path.normpath(path)) or path


def get_upstream(root, timeout=None) -> str:
    return run_git(root, 'rev-parse', '--abbrev-ref', '--symbolic-full-name', '@{u}', timeout=timeout)


def should_fetch_from_reflog(reflog, interval, now=None) -> bool:
    """Decide from the newest reflog line of the upstream ref.

    Only a `fetch` entry younger than interval seconds suppresses a fetch;
    clone/pull/update entries and anything unparsable mean "fetch".
    """
    match = _REFLOG_ENTRY.search(reflog or '')
    if not match or not match.group(2).startswith('fetch'):
        return True
    now = time.time() if now is None else now
    return now - int(match.group(1)) >= interval


def should_fetch(root, interval, timeout=None) -> bool:
    upstream = get_upstream(root, timeout=timeout)
    if not upstream:
        return True

    reflog = run_git(root, 'reflog', 'show', '--date=unix', upstream, '-1', timeout=timeout)
    if not reflog:
        return True
    return should_fetch_from_reflog(reflog, interval)


def fetch_upstream(root, timeout=None):
    """`git fetch` just the upstream branch of the current branch"""
    upstream = get_upstream(root, timeout=timeout)
    if not upstream:
        return
    remote, sep, branch = upstream.partition('/')
    if not sep or not branch:
        return
    logger.debug("fetching %s %s in %s", remote, branch, root)
    run_git(root, 'fetch', '--quiet', '--no-progress', '--prune', remote, branch, timeout=timeout)


def collect(cwd, settings: Settings = None) -> RepoInfo:
    """Gather everything render() needs for the repository containing cwd"""
    settings = load_settings() if settings is None else settings
    timeout = settings.git_timeout

    info = RepoInfo(project=project_name(cwd))

    root = run_git(cwd, 'rev-parse', '--show-toplevel', timeout=timeout)
    if not root:
        return info
    info.is_git = True
    info.project = project_name(root)

    # A root with replaced undecodable bytes is not a real path, so stay in cwd
    workdir = root if os.path.isdir(root) else cwd

    if settings.fetch:
        if should_fetch(workdir, settings.fetch_interval, timeout=timeout):
            fetch_upstream(workdir, timeout=timeout)
        else:
            logger.debug("skipping fetch in %s, last fetch is recent", workdir)

    status = run_git(workdir, 'status', '--porcelain=2', '--branch', '--ignore-submodules=dirty', timeout=timeout)
    parsed = parse_status(status)
    info.branch = parsed.branch
    info.ahead = parsed.ahead
    info.behind = parsed.behind
    info.has_tracked = parsed.has_tracked
    info.has_untracked = parsed.has_untracked

    if not info.branch:
        info.branch = 'no-branch'
    if info.branch == '(detached)':
        sha = run_git(workdir, 'rev-parse', '--short', 'HEAD', timeout=timeout)
        if sha:
            info.branch = f"detached@{sha}"
    return info


def main(argv=None):
    parser = argparse.ArgumentParser(description='Show the git state the status line would render')
    parser.add_argument('path', nargs='?', default='.', help='Directory inside a git repository')
    parser.add_argument('--json', action='store_true', help='Output the collected record as JSON')
    parser.add_argument('--debug', action='store_true', help='Log git calls to stderr (same as STATUSLINE_DEBUG=1)')

    args = parser.parse_args(argv)

    settings = load_settings()
    settings.debug = settings.debug or args.debug
    setup_logging(settings.debug)

    if not os.path.isdir(args.path):
        print(f"Error: Directory '{args.path}' does not exist", file=sys.stderr)
        sys.exit(1)

    info = collect(os.path.abspath(args.path), settings)

    if args.json:
        print(json.dumps(asdict(info)))
        return

    print(f"Project: {info.project}")
    if not info.is_git:
        print("Not a git repository")
        return
    print(f"Branch: {info.branch}")
    print(f"Ahead/behind: +{info.ahead} -{info.behind}")
    print(f"Tracked changes: {'yes' if info.has_tracked else 'no'}")
    print(f"Untracked files: {'yes' if info.has_untracked else 'no'}")


if __name__ == "__main__":
    main()
