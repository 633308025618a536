"""File browser routes."""

import os

from fastapi import (APIRouter, Depends, Form, HTTPException, Query, Request,
                     status)
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from src.api.dependencies import get_file_manager, get_file_policy
from src.api.models.file_models import (BrowseResponse, ErrorResponse,
                                        FileEntry, PathResponse,
                                        RenameResponse)
from src.api.streaming import stream_from_sink
from src.api.upload_policy import FilePolicy, limit_request_body, measure_stream
from src.core.files import FileManager
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["files"])

FORM_PARAM_FILE = "file"

ERROR_RESPONSES = {
    400: {"description": "Invalid path", "model": ErrorResponse},
    403: {"description": "Forbidden", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
}


def normalize_path(path: str) -> str:
    """Map the current-directory and root markers to the empty root path."""
    if path in (os.curdir, os.sep):
        return ""
    return path


def parent_path(path: str) -> str:
    if not path:
        return ""
    return normalize_path(os.path.dirname(os.path.normpath(path)))


def build_full_path(current_path: str, name: str) -> str:
    if current_path:
        return os.path.join(current_path, name)
    return name


@router.get(
    "/",
    response_model=BrowseResponse,
    summary="Browse root",
    responses=ERROR_RESPONSES,
)
@router.get(
    "/browse",
    response_model=BrowseResponse,
    summary="Browse folder",
    description="List the entries of a folder in storage order",
    responses=ERROR_RESPONSES,
)
def browse(
    path: str = Query("", description="Folder path relative to the base directory"),
    file_manager: FileManager = Depends(get_file_manager),
) -> BrowseResponse:
    files = file_manager.list(path)
    return BrowseResponse(
        path=path,
        parent=parent_path(path),
        files=[FileEntry(name=f.name, is_dir=f.is_dir) for f in files],
    )


@router.post(
    "/upload",
    response_model=PathResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description="Upload a multipart file into a folder",
    responses=ERROR_RESPONSES,
)
async def upload(
    request: Request,
    file_manager: FileManager = Depends(get_file_manager),
    policy: FilePolicy = Depends(get_file_policy),
) -> PathResponse:
    # Declared length first; the streamed body is capped while it is parsed
    policy.check_declared_size(request.headers.get("content-length"))

    async with limit_request_body(request, policy).form() as form:
        upload_file = form.get(FORM_PARAM_FILE)
        if not isinstance(upload_file, UploadFile) or not upload_file.filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing form file '{FORM_PARAM_FILE}'",
            )
        filename = os.path.basename(upload_file.filename)

        size = upload_file.size
        if size is None:
            size = await run_in_threadpool(measure_stream, upload_file.file)
        policy.check_file_size(size)
        policy.check_filename(filename)

        current_path = str(form.get("path") or "")
        target_path = build_full_path(current_path, filename)

        stored = await run_in_threadpool(
            file_manager.upload_file, target_path, upload_file.file
        )

    logger.info("file_uploaded", operation="upload", path=stored, size=size)
    return PathResponse(path=stored, parent=normalize_path(current_path))


@router.post(
    "/create-folder",
    response_model=PathResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create folder",
    responses=ERROR_RESPONSES,
)
def create_folder(
    name: str = Form(..., description="New folder name"),
    path: str = Form("", description="Parent folder path"),
    file_manager: FileManager = Depends(get_file_manager),
) -> PathResponse:
    full_path = build_full_path(path, name)
    created = file_manager.create_folder(full_path)

    logger.info("folder_created", operation="create_folder", path=created)
    return PathResponse(path=created, parent=normalize_path(path))


@router.api_route(
    "/delete",
    methods=["POST", "DELETE"],
    response_model=PathResponse,
    summary="Delete file or folder",
    description="Recursively delete; deleting a missing path succeeds",
    responses=ERROR_RESPONSES,
)
def delete(
    path: str = Query(..., description="Path to delete"),
    file_manager: FileManager = Depends(get_file_manager),
) -> PathResponse:
    deleted = file_manager.delete(path)

    logger.info("entry_deleted", operation="delete", path=deleted)
    return PathResponse(path=deleted, parent=parent_path(path))


@router.post(
    "/rename",
    response_model=RenameResponse,
    summary="Rename file or folder",
    description="Rename an entry inside its current folder",
    responses=ERROR_RESPONSES,
)
def rename(
    old: str = Form(..., description="Current path"),
    new: str = Form(..., description="New name"),
    file_manager: FileManager = Depends(get_file_manager),
) -> RenameResponse:
    parent = parent_path(old)
    new_full_path = os.path.join(parent, new)
    renamed = file_manager.rename(old, new_full_path)

    logger.info("entry_renamed", operation="rename", old_path=old, new_path=renamed)
    return RenameResponse(old_path=old, new_path=renamed, parent=parent)


def _check_download_allowed(policy: FilePolicy, path: str) -> None:
    policy.check_filename(os.path.basename(path))


@router.get(
    "/download",
    response_class=StreamingResponse,
    summary="Download file",
    responses=ERROR_RESPONSES,
)
def download(
    path: str = Query(..., description="File path"),
    file_manager: FileManager = Depends(get_file_manager),
    policy: FilePolicy = Depends(get_file_policy),
) -> StreamingResponse:
    _check_download_allowed(policy, path)
    return stream_from_sink(lambda sink: file_manager.serve_file(sink, path), name="file")


@router.get(
    "/download-folder",
    response_class=StreamingResponse,
    summary="Download folder as zip",
    description="Stream the folder's non-hidden files as a zip archive",
    responses=ERROR_RESPONSES,
)
def download_folder(
    path: str = Query("", description="Folder path"),
    file_manager: FileManager = Depends(get_file_manager),
    policy: FilePolicy = Depends(get_file_policy),
) -> StreamingResponse:
    _check_download_allowed(policy, path)
    return stream_from_sink(
        lambda sink: file_manager.serve_folder_as_zip(sink, path), name="zip"
    )
