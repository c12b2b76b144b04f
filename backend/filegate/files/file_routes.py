"""File browser routes. Every request goes through a per-user FileManager."""

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from filegate.common import User
from filegate.responses import raise_for_outcome

from .file_manager import FileManager, IncomingFile
from .filesystem import LocalFilesystem
from .models import DirectoryEntry, OperationResponse, UploadResult

if TYPE_CHECKING:
    from filegate.auth import Validate


def configure_file_router(
    router: APIRouter,
    validate: "Validate",
    server_root: str,
    strict_write_checks: bool = True,
    filesystem: LocalFilesystem | None = None,
) -> APIRouter:
    """Configure the file router.

    :param router: The APIRouter to configure
    :param validate: The Validate instance resolving the current user
    :param server_root: Root no file operation may escape
    :param strict_write_checks: Require write capability for directory
        creation and uploads
    :param filesystem: Filesystem primitives shared by all requests
    :return: The configured APIRouter
    """
    filesystem = filesystem or LocalFilesystem()

    def file_manager(
        user: Annotated[User, Depends(validate.jwt_token)],
    ) -> FileManager:
        return FileManager(
            user,
            server_root,
            filesystem=filesystem,
            strict_write_checks=strict_write_checks,
        )

    @router.get("/list", response_model=list[DirectoryEntry])
    def list_directory(
        path: Annotated[str, Query()],
        manager: Annotated[FileManager, Depends(file_manager)],
    ) -> list[DirectoryEntry]:
        outcome = manager.list_directory(path)
        raise_for_outcome(outcome)
        return outcome.value

    @router.post("/directory", response_model=OperationResponse)
    def create_directory(
        path: Annotated[str, Form()],
        manager: Annotated[FileManager, Depends(file_manager)],
    ) -> OperationResponse:
        raise_for_outcome(manager.create_directory(path))
        return OperationResponse(success=True, message=f"Created {path}")

    @router.delete("/item", response_model=OperationResponse)
    def delete_item(
        path: Annotated[str, Form()],
        manager: Annotated[FileManager, Depends(file_manager)],
    ) -> OperationResponse:
        raise_for_outcome(manager.delete_item(path))
        return OperationResponse(success=True, message=f"Deleted {path}")

    @router.post("/rename", response_model=OperationResponse)
    def rename_item(
        old_path: Annotated[str, Form()],
        new_path: Annotated[str, Form()],
        manager: Annotated[FileManager, Depends(file_manager)],
    ) -> OperationResponse:
        raise_for_outcome(manager.rename_item(old_path, new_path))
        return OperationResponse(success=True, message=f"Renamed {old_path} to {new_path}")

    @router.post("/upload", response_model=list[UploadResult])
    def upload_files(
        path: Annotated[str, Form()],
        files: Annotated[list[UploadFile], File()],
        manager: Annotated[FileManager, Depends(file_manager)],
    ) -> list[UploadResult]:
        incoming = [
            IncomingFile(filename=upload.filename or "", stream=upload.file)
            for upload in files
        ]
        outcome = manager.upload_files(path, incoming)
        raise_for_outcome(outcome, failed_status=status.HTTP_400_BAD_REQUEST)
        return outcome.value

    return router
