"""File listing and upload endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, File, UploadFile, status
from fastapi.responses import JSONResponse

from src.api.dependencies import BlobServiceDep
from src.api.middleware.error_handler import APIError
from src.application.dtos.blob import BlobDto, BlobResponseDto
from src.domain.exceptions import InvalidUploadException

router = APIRouter()


@router.get(
    "/files",
    response_model=list[BlobDto],
    summary="List files",
    description="List every file stored in the configured container.",
    responses={status.HTTP_404_NOT_FOUND: {"description": "Container not found"}},
)
async def list_files(service: BlobServiceDep) -> Any:
    """Return URI, name and content type of every stored file."""
    files = await service.list_blobs()

    if files is None:
        raise APIError(
            code="CONTAINER_NOT_FOUND",
            message="The storage container does not exist",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return files


@router.post(
    "/files/Upload",
    response_model=BlobResponseDto,
    summary="Upload a file",
    description=(
        "Store the uploaded file under its own filename. Existing files are "
        "never overwritten; a name clash is reported in the response body."
    ),
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "File part has no filename"},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "description": "Unexpected storage failure, body is the status message",
            "content": {"application/json": {"schema": {"type": "string"}}},
        }
    },
)
async def upload_file(
    file: Annotated[UploadFile | str, File(description="File to upload")],
    service: BlobServiceDep,
) -> Any:
    """Upload a file and report the outcome."""
    # A part sent without a filename is parsed as a plain form field
    if isinstance(file, str) or not file.filename:
        raise InvalidUploadException("the file part has no filename")

    try:
        response = await service.upload(file.filename, file.file, file.content_type)
    finally:
        await file.close()

    if response.error and not response.is_conflict:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response.status,
        )

    return response
