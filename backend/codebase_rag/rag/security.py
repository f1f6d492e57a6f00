"""Confinement of indexing requests to the project root."""
import os
from pathlib import Path
from typing import Union

from .errors import PathTraversalError

StrPath = Union[str, "os.PathLike[str]"]


def confine(requested_dir: StrPath, project_root: StrPath) -> Path:
    """Resolve *requested_dir* against *project_root* and enforce containment.

    The check is lexical: ``..`` segments are collapsed but symlinks are not
    followed.  An absolute *requested_dir* is accepted only when it already
    lies under the root.

    Returns:
        The absolute resolved directory.

    Raises:
        PathTraversalError: If the result is neither the root nor beneath it.
    """
    root = os.path.abspath(os.fspath(project_root))
    resolved = os.path.abspath(os.path.join(root, os.fspath(requested_dir)))

    prefix = root if root.endswith(os.sep) else root + os.sep
    if resolved != root and not resolved.startswith(prefix):
        raise PathTraversalError()

    return Path(resolved)
