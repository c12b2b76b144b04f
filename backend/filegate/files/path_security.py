"""Path predicates shared by the file manager and user management.

Containment is always decided on canonical paths: symlinks, ``.`` and
``..`` are resolved first, and the root must then be a whole path-segment
prefix of the candidate. A root of ``/srv/data`` contains
``/srv/data/reports`` but not ``/srv/database``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_UNNAMEABLE = ("", ".", "..")


def canonicalize(path: str | os.PathLike[str], must_exist: bool = True) -> Path | None:
    """Resolve a path to its canonical absolute form.

    When ``must_exist`` is False the final component may be missing (a
    directory about to be created, a rename target). In that case only the
    parent is resolved and the final name is appended as given.

    :param path: Path to resolve
    :param must_exist: Whether the final component has to exist
    :return: The canonical path, or None when it cannot be resolved
    """
    raw = os.fspath(path)
    if not raw:
        return None

    candidate = Path(raw)
    try:
        if must_exist:
            return candidate.resolve(strict=True)

        if candidate.name in _UNNAMEABLE:
            return None
        return candidate.parent.resolve(strict=True) / candidate.name
    except (OSError, RuntimeError, ValueError) as e:
        LOGGER.debug("Could not canonicalize %s: %s", raw, e)
        return None


def is_contained(root: Path, candidate: Path) -> bool:
    """Check segment-wise containment of two already canonical paths.

    :param root: The containing directory
    :param candidate: The path to test
    :return: True if candidate is root or lies underneath it
    """
    return candidate == root or root in candidate.parents


def is_within_root(root: str | os.PathLike[str], path: str | os.PathLike[str]) -> bool:
    """Check that ``path`` exists and canonically lies under ``root``.

    :param root: The sandbox root
    :param path: The path to test
    :return: False if either path cannot be canonicalized or path escapes root
    """
    canonical_root = canonicalize(root)
    canonical_path = canonicalize(path)
    if canonical_root is None or canonical_path is None:
        return False
    return is_contained(canonical_root, canonical_path)


def _literal_parent(path: str) -> str:
    separators = os.sep + (os.altsep or "")
    stripped = path.rstrip(separators)
    return os.path.dirname(stripped or path)


def same_parent_directory(path_a: str, path_b: str) -> bool:
    """Check that two paths share a parent, taken literally.

    No canonicalization happens here since a rename target does not exist
    yet. Trailing separators are ignored.

    :param path_a: First path
    :param path_b: Second path
    :return: True if both paths have the same parent component
    """
    return _literal_parent(path_a) == _literal_parent(path_b)
