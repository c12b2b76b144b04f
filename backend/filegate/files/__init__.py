"""Gated filesystem operations and the path checks behind them."""

from .file_manager import FileManager, IncomingFile
from .file_routes import configure_file_router
from .filesystem import EntryStat, LocalFilesystem
from .path_security import (
    canonicalize,
    is_contained,
    is_within_root,
    same_parent_directory,
)

__all__ = [
    "EntryStat",
    "FileManager",
    "IncomingFile",
    "LocalFilesystem",
    "canonicalize",
    "configure_file_router",
    "is_contained",
    "is_within_root",
    "same_parent_directory",
]
