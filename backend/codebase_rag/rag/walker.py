"""Directory traversal that selects candidate files for indexing.

The walk is depth-first over an explicit stack, visiting entries in sorted
name order so that the same tree always yields the same file list.
"""
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10

SUPPORTED_EXTENSIONS: Tuple[str, ...] = (
    # JavaScript / TypeScript
    ".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".vue", ".svelte",
    # Other languages
    ".py", ".pyi", ".rb", ".go", ".rs", ".java", ".kt", ".kts", ".scala",
    ".swift", ".php", ".lua", ".dart",
    ".c", ".cc", ".cpp", ".h", ".hpp", ".cs",
    # Docs and config
    ".md", ".rst", ".txt", ".json", ".yaml", ".yml", ".toml", ".ini", ".xml",
    # Markup and styles
    ".html", ".css", ".scss", ".less",
    # Scripts and queries
    ".sql", ".sh", ".bash", ".ps1", ".bat",
)

DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    "__pycache__",
)


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase extensions and make sure each starts with a dot."""
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else "." + ext)
    return frozenset(normalized)


def walk(
    root_dir: Path,
    extensions: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    max_files: int = 100,
    max_depth: int = DEFAULT_MAX_DEPTH,
    skip_paths: Iterable[str] = (),
) -> List[str]:
    """Collect up to *max_files* indexable files beneath *root_dir*.

    Args:
        root_dir:         Directory to start from (depth 0).
        extensions:       Allowed file extensions, matched case-insensitively.
                          Defaults to ``SUPPORTED_EXTENSIONS``.
        exclude_patterns: Entries whose name contains any of these substrings
                          are skipped, files and directories alike.
        max_files:        Stop once this many paths were collected.
        max_depth:        Directories deeper than this are not entered.
        skip_paths:       Absolute file paths never to return.

    Returns:
        Absolute file paths in traversal order.
    """
    allowed = normalize_extensions(
        SUPPORTED_EXTENSIONS if extensions is None else extensions
    )
    excludes = tuple(DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns)
    skipped = frozenset(skip_paths)

    files: List[str] = []
    if max_files <= 0:
        return files

    stack: List[Tuple[Iterator[os.DirEntry], int]] = [
        (iter(_list_dir(str(root_dir))), 0)
    ]

    while stack and len(files) < max_files:
        entries, depth = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            continue

        if any(pattern in entry.name for pattern in excludes):
            continue

        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = not is_dir and entry.is_file(follow_symlinks=False)
        except OSError as exc:
            logger.debug("[walker] Cannot stat %s: %s", entry.path, exc)
            continue

        if is_dir:
            if depth < max_depth:
                stack.append((iter(_list_dir(entry.path)), depth + 1))
        elif (
            is_file
            and os.path.splitext(entry.name)[1].lower() in allowed
            and entry.path not in skipped
        ):
            files.append(entry.path)

    logger.debug("[walker] Collected %d file(s) under %s", len(files), root_dir)
    return files


def _list_dir(path: str) -> List[os.DirEntry]:
    """Return the sorted entries of *path*, or ``[]`` if it cannot be read."""
    try:
        with os.scandir(path) as it:
            entries = list(it)
    except OSError as exc:
        logger.warning("[walker] Skipping unreadable directory %s: %s", path, exc)
        return []
    entries.sort(key=lambda e: e.name)
    return entries
