"""
Git client infrastructure for relengindex.

Version-control collaborator used to commit map file updates.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Cancelable between steps
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging

from ..exceptions import VcsError
from ..progress import ProgressMonitor

logger = logging.getLogger(__name__)


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        client.commit("/ws/org.eclipse.releng", ["maps/core.map"], "Update core map")
    """

    def __init__(self, timeout: int = 30):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def _run(self, args: Sequence[str], cwd) -> Tuple[str, str, int]:
        """
        Run a git command.

        Args:
            args: Arguments after "git"
            cwd: Working directory

        Returns:
            Tuple of (stdout, stderr, returncode)

        Raises:
            VcsError: If git could not be started or timed out
        """
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            raise VcsError(f"git {args[0]} timed out after {self.timeout}s") from e
        except OSError as e:
            raise VcsError(f"Git command failed: {' '.join(cmd)} - {e}") from e

        # Keep leading spaces: porcelain status columns are positional
        return result.stdout.rstrip("\n"), result.stderr.strip(), result.returncode

    def _check(self, args: Sequence[str], cwd) -> str:
        stdout, stderr, code = self._run(args, cwd)
        if code != 0:
            raise VcsError(f"git {' '.join(args)} failed: {stderr or stdout}", code, stderr)
        return stdout

    def is_git_repo(self, path) -> bool:
        """Check if path is inside a git work tree."""
        try:
            stdout, _, code = self._run(["rev-parse", "--is-inside-work-tree"], path)
        except VcsError:
            return False
        return code == 0 and stdout == "true"

    def changed_files(self, path, paths: Optional[List[str]] = None) -> List[str]:
        """Paths with uncommitted changes, relative to path."""
        args = ["status", "--porcelain"]
        if paths:
            args += ["--", *paths]
        output = self._check(args, path)
        return [line[3:] for line in output.splitlines() if line.strip()]

    def commit(
        self,
        path,
        paths: Optional[List[str]],
        message: str,
        monitor: Optional[ProgressMonitor] = None
    ) -> bool:
        """
        Stage and commit resources.

        Args:
            path: Repository working directory
            paths: Paths to commit, relative to path (None for everything)
            message: Commit message
            monitor: Cancellation token checked between steps

        Returns:
            True if a commit was created, False if there was nothing to commit

        Raises:
            OperationCanceled: If the monitor was canceled
            VcsError: If a git command failed
        """
        monitor = monitor or ProgressMonitor()
        monitor.begin(f"Committing {Path(path).name}", 3)

        monitor.check_canceled()
        targets = list(paths) if paths else ["."]
        self._check(["add", "--", *targets], path)
        monitor.worked()

        monitor.check_canceled()
        if not self.changed_files(path, paths):
            logger.info(f"Nothing to commit in {path}")
            return False
        monitor.worked()

        monitor.check_canceled()
        self._check(["commit", "-m", message, "--", *targets], path)
        monitor.worked()
        logger.info(f"Committed {path}: {message}")
        return True
