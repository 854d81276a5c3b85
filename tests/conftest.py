"""Pytest configuration and fixtures for diffhelper tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Generator

import pytest

OLD_SHA = "1" * 40
NEW_SHA = "2" * 40
OTHER_SHA = "abcdef0123456789abcdef0123456789abcdef01"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="diffhelper_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


class GitRepoHelper:
    """Helper class for writing objects into a scratch repository."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.git_dir = repo_path / ".git"
        self.env = os.environ.copy()
        self.env.update({
            "GIT_AUTHOR_NAME": "Test User",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test User",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        })

    def run_git(self, args: list[str], input: bytes = None) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=self.env,
            input=input,
            check=True,
            capture_output=True,
        )

    def write_blob(self, content: str) -> str:
        """Store content as a blob and return its hex id."""
        result = self.run_git(["hash-object", "-w", "--stdin"], input=content.encode("utf-8"))
        return result.stdout.decode("ascii").strip()


@pytest.fixture
def git_helper(temp_dir: Path) -> GitRepoHelper:
    """Create a scratch repository and its helper."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")
    repo_path = temp_dir / "objects_repo"
    repo_path.mkdir()
    helper = GitRepoHelper(repo_path)
    helper.run_git(["init", "-q"])
    return helper


class FakeObjectStore:
    """In-memory stand-in for GitObjectStore."""

    def __init__(self, blobs=None, body="@@ -1 +1 @@\n-old\n+new\n"):
        self.blobs = {bytes.fromhex(k): v for k, v in (blobs or {}).items()}
        self.body = body
        self.diff_calls = []

    def read_blob(self, object_id: bytes) -> bytes:
        return self.blobs.get(object_id, b"")

    def diff_blobs(self, old_id: bytes, new_id: bytes) -> str:
        self.diff_calls.append((old_id, new_id))
        return self.body


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()
