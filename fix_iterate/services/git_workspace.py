"""
Git Workspace
=============
Restores files in the working tree after a failed verification.
Only file-level restore is offered: no commits, branches or pushes.

Paths reported by the fixer may be absolute or relative; both are mapped
to workspace-relative paths before git sees them. ``git ls-files -z`` is
used so that non-ASCII names come back unquoted.
"""
import logging
import os
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)


class GitWorkspace:
    """Thin wrapper over ``git`` for rolling back files modified by a fix."""

    def __init__(self, workspace_path: str = ".") -> None:
        self.workspace_path = os.path.abspath(workspace_path)

    def relative_path(self, path: str) -> Optional[str]:
        """
        Workspace-relative forward-slash path, or None when ``path`` points
        outside the workspace (or at the workspace root itself).
        """
        abs_path = os.path.normpath(os.path.join(self.workspace_path, path))
        if not abs_path.startswith(self.workspace_path + os.sep):
            return None
        return os.path.relpath(abs_path, self.workspace_path).replace(os.sep, "/")

    def _git(self, *args: str) -> str:
        return subprocess.run(
            ["git", "--literal-pathspecs", *args],
            cwd=self.workspace_path,
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
        ).stdout

    def restore(self, files: List[str]) -> bool:
        """
        Restore the given files to their committed content.

        Untracked files created by the fixer are removed.

        Returns
        -------
        bool
            True if every file was restored.
        """
        relative = {f: self.relative_path(f) for f in files}
        rejected = [f for f, rel in relative.items() if rel is None]
        if rejected:
            logger.error("Refusing to restore paths outside workspace: %s", rejected)
            return False

        paths = list(dict.fromkeys(relative.values()))
        if not paths:
            return True

        try:
            tracked = {p for p in self._git("ls-files", "-z", "--", *paths).split("\0") if p}
            if tracked:
                self._git("checkout", "--", *sorted(tracked))

            untracked = [p for p in paths if p not in tracked]
            for rel_path in untracked:
                abs_path = os.path.join(self.workspace_path, rel_path)
                if os.path.isfile(abs_path):
                    os.remove(abs_path)
            logger.info("Restored %d file(s) (%d untracked removed)", len(tracked), len(untracked))
            return True
        except subprocess.CalledProcessError as e:
            logger.error("git restore failed: %s", e.stderr)
            return False
        except OSError as e:
            logger.error("Unexpected error during restore: %s", e)
            return False
