"""File discovery with directory, extension and size exclusions."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 1024 * 1024  # 1 MiB

SKIP_DIRS: frozenset[str] = frozenset(
    {
        "node_modules", ".git", ".svn", ".hg", "dist", "build", "out",
        "bin", "obj", ".next", ".nuxt", "__pycache__", ".venv", "venv",
        "vendor", "packages", ".vs", ".idea", "coverage", ".nyc_output",
        "target", ".gradle", ".maven", "bower_components", "jspm_packages",
    }
)

SKIP_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".svg", ".webp",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # Media
        ".mp3", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".ogg", ".wav",
        # Archives
        ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2",
        # Binaries
        ".exe", ".dll", ".so", ".dylib", ".bin", ".class", ".pyc", ".pyo",
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # Lockfiles, bundles, source maps
        ".lock", ".min.js", ".min.css", ".map",
        # Databases
        ".db", ".sqlite", ".sqlite3",
    }
)

LOCKFILE_NAMES: frozenset[str] = frozenset(
    {"package-lock.json", "yarn.lock", "pnpm-lock.yaml", "npm-shrinkwrap.json"}
)


def should_skip_file(name: str) -> bool:
    """Check a file's basename against the extension and dotfile policy.

    Dotfiles are skipped unless their name contains ``env``, so ``.env`` and
    ``.env.local`` are scanned while ``.DS_Store`` or ``.gitignore`` are not.

    Args:
        name: The file's basename.

    Returns:
        True if the file must not be scanned.
    """
    lowered = name.lower()
    # endswith rather than suffix so ".min.js" style compound extensions match
    if any(lowered.endswith(ext) for ext in SKIP_EXTENSIONS):
        return True
    if name.startswith(".") and "env" not in name:
        return True
    if name in LOCKFILE_NAMES:
        return True
    return False


class FileWalker:
    """Enumerates scannable files under a root directory.

    Traversal is depth-first over an explicit stack, visiting directory
    entries in sorted order so the same tree always yields the same list.
    Symlinks are neither followed nor returned. Unreadable directories and
    files that cannot be stat-ed are skipped.

    Example:
        walker = FileWalker()
        for path in walker.walk(Path("./repo")):
            print(path)
    """

    def __init__(
        self,
        skip_dirs: frozenset[str] = SKIP_DIRS,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        self.skip_dirs = skip_dirs
        self.max_file_size = max_file_size

    def walk(self, root: Path | str) -> list[Path]:
        """Return every scannable file under ``root`` as an absolute path."""
        return list(self.iter_files(root))

    def iter_files(self, root: Path | str) -> Iterator[Path]:
        root_path = Path(root).resolve()
        stack: list[Iterator[os.DirEntry[str]]] = [iter(self._list_dir(root_path))]

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                logger.debug("Skipping unreadable entry %s", entry.path)
                continue

            if is_dir:
                if entry.name not in self.skip_dirs:
                    stack.append(iter(self._list_dir(Path(entry.path))))
                continue

            if not is_file or should_skip_file(entry.name):
                continue

            try:
                size = entry.stat(follow_symlinks=False).st_size
            except OSError:
                logger.debug("Skipping file that cannot be stat-ed: %s", entry.path)
                continue

            if size > self.max_file_size:
                logger.debug("Skipping %s (%d bytes exceeds limit)", entry.path, size)
                continue

            yield Path(entry.path)

    def _list_dir(self, path: Path) -> list[os.DirEntry[str]]:
        try:
            with os.scandir(path) as entries:
                return sorted(entries, key=lambda e: e.name)
        except OSError:
            logger.debug("Skipping unreadable directory %s", path)
            return []
