"""Shared fixtures for statusline tests."""

import logging
import os
import shutil
import subprocess

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without any statusline/NO_COLOR settings leaking in."""
    for key in list(os.environ):
        if key.startswith("STATUSLINE_") or key == "NO_COLOR":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Drop the stderr handler main() installs so it cannot outlive the test's capture."""
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


def git(cwd, *args):
    """Run a setup git command, failing the test loudly if it breaks."""
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
        errors="replace",
    ).stdout.strip()


def commit_file(repo, name, content="content\n", message=None):
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message or f"add {name}")


def make_repo(path, commit=True):
    path.mkdir(parents=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    if commit:
        commit_file(path, "README.md", "# readme\n", "initial commit")
    return path


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolated git environment: fixed identity, no user/system config, generous timeout."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    # CI machines can be slower than a prompt render budget
    monkeypatch.setenv("STATUSLINE_GIT_TIMEOUT_MS", "10000")
    return tmp_path


@pytest.fixture
def repo(git_env):
    return make_repo(git_env / "myproject")


@pytest.fixture
def cloned(git_env):
    """(origin, clone) pair where clone tracks origin/main."""
    origin = make_repo(git_env / "origin")
    clone = git_env / "clone"
    git(git_env, "clone", "-q", str(origin), str(clone))
    return origin, clone
