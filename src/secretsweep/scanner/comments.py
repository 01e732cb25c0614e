"""Comment-line heuristic used to skip lines before matching."""

from __future__ import annotations

# Line comments, block comment openers and continuations, markup comments,
# and batch/shell idioms. Matched against the stripped line only.
COMMENT_PREFIXES: tuple[str, ...] = (
    "//",
    "#",
    "/*",
    "*",
    "<!--",
    "REM ",
    "rem ",
    "::",
    "echo ",
)


def is_comment(line: str) -> bool:
    """Return True if the stripped line starts with a comment introducer.

    This looks at one line in isolation. Lines inside a multi-line block
    comment that do not start with a recognised marker are still scanned,
    and code that happens to start with a marker (``*ptr = ...``) is skipped.
    """
    return line.strip().startswith(COMMENT_PREFIXES)
