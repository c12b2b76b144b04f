"""Models for file-related responses."""

from __future__ import annotations

from pydantic import BaseModel


class DirectoryEntry(BaseModel):
    """One item of a directory listing.

    ``is_editable`` and ``is_selected`` are browser UI state, always False
    here. They carry no authorization meaning.

    :param name: Item name
    :param size: Size in bytes
    :param is_directory: Whether the item is a directory
    :param extension: File extension without the dot, empty for directories
    :param last_modified_time: Modification time as a unix timestamp
    :param full_location: Full path, separator-terminated for directories
    :param location_without_item_name: The listed directory
    """

    name: str
    size: int
    is_directory: bool
    extension: str
    last_modified_time: float
    full_location: str
    location_without_item_name: str
    is_editable: bool = False
    is_selected: bool = False


class UploadResult(BaseModel):
    """Result of storing one uploaded file.

    :param filename: Name the file was stored under
    :param success: Whether the copy succeeded
    """

    filename: str
    success: bool


class OperationResponse(BaseModel):
    """Generic response for a gated file operation."""

    success: bool
    message: str
