"""Git-backed object store for diffhelper."""

import logging
import os
import re
import subprocess
from typing import Dict, List, Optional

from .errors import GitTimeoutError, GitVersionUnsupportedError, ObjectReadError

logger = logging.getLogger(__name__)

# Id of the zero-length blob.
EMPTY_BLOB_ID = bytes.fromhex("e69de29bb2d1d6434b8b29ae775ad8c2e48c5391")

_BODY_START = ("@@", "Binary files")


def git_env() -> Dict[str, str]:
    """Get Git environment variables for deterministic output."""
    env = os.environ.copy()

    # Use platform-appropriate null device
    null_device = "NUL" if os.name == "nt" else "/dev/null"

    env.update(
        {
            "LC_ALL": "C",
            "GIT_CONFIG_GLOBAL": null_device,
            "GIT_CONFIG_SYSTEM": null_device,
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_PAGER": "cat",
        }
    )
    return env


class GitObjectStore:
    """Reads blobs and blob-to-blob diffs from a git repository."""

    def __init__(self, git_dir: Optional[str] = None, timeout: int = 30):
        """Initialize with an optional repository location."""
        self.git_dir = git_dir
        self.timeout = timeout
        self._git_version: Optional[str] = None
        self._blob_cache: Dict[bytes, bytes] = {}
        self._empty_blob_written = False

    def _run_git(
        self,
        args: List[str],
        check: bool = True,
        input: Optional[bytes] = None,
    ) -> subprocess.CompletedProcess:
        """Run git command with proper environment and error handling."""
        cmd = [
            "git",
            "-c",
            "core.autocrlf=false",
            "-c",
            "color.ui=false",
        ]
        if self.git_dir:
            cmd.append(f"--git-dir={self.git_dir}")
        cmd += args

        logger.debug("Running git", extra={"git_args": args})
        try:
            return subprocess.run(
                cmd,
                env=git_env(),
                input=input,
                timeout=self.timeout,
                check=check,
                capture_output=True,
            )
        except subprocess.TimeoutExpired as e:
            raise GitTimeoutError(args[0], self.timeout) from e
        except subprocess.CalledProcessError as e:
            reason = e.stderr.decode("utf-8", errors="replace").strip() or str(e)
            raise ObjectReadError(args[0], reason) from e
        except OSError as e:
            raise ObjectReadError(args[0], str(e)) from e

    def validate_git_version(self) -> str:
        """Validate Git version meets minimum requirements."""
        if self._git_version:
            return self._git_version

        try:
            result = self._run_git(["--version"])
        except (ObjectReadError, GitTimeoutError) as e:
            raise GitVersionUnsupportedError("unavailable", "2.30") from e

        version_line = result.stdout.decode("ascii", errors="replace").strip()
        # Extract version number from "git version 2.34.1"
        match = re.search(r"git version (\d+\.\d+(?:\.\d+)?)", version_line)
        if not match:
            raise GitVersionUnsupportedError("unknown", "2.30")

        version_str = match.group(1)
        version_parts = [int(x) for x in version_str.split(".")]

        if version_parts[0] < 2 or (version_parts[0] == 2 and version_parts[1] < 30):
            raise GitVersionUnsupportedError(version_str, "2.30")

        self._git_version = version_str
        return version_str

    def _ensure_empty_blob(self) -> None:
        """Write the empty blob so diffs against a missing side resolve."""
        if self._empty_blob_written:
            return
        self._run_git(["hash-object", "-w", "--stdin"], input=b"")
        self._empty_blob_written = True

    def read_blob(self, object_id: bytes) -> bytes:
        """Return the content of a blob."""
        if object_id == EMPTY_BLOB_ID:
            return b""
        cached = self._blob_cache.get(object_id)
        if cached is not None:
            return cached

        result = self._run_git(["cat-file", "blob", object_id.hex()])
        self._blob_cache[object_id] = result.stdout
        return result.stdout

    def diff_blobs(self, old_id: bytes, new_id: bytes) -> str:
        """Return the hunk body of the diff between two blobs.

        The header git prints for blob-to-blob diffs names the object ids,
        so everything before the first hunk or binary notice is dropped.
        """
        if EMPTY_BLOB_ID in (old_id, new_id):
            self._ensure_empty_blob()

        result = self._run_git(
            ["diff", "--no-color", "--no-ext-diff", old_id.hex(), new_id.hex()],
            check=False,
        )
        if result.returncode not in (0, 1):
            reason = result.stderr.decode("utf-8", errors="replace").strip()
            raise ObjectReadError("diff", reason or f"exit status {result.returncode}")

        text = result.stdout.decode("utf-8", errors="surrogateescape")
        lines = text.splitlines(keepends=True)
        for index, line in enumerate(lines):
            if line.startswith(_BODY_START):
                return "".join(lines[index:])
        return ""
