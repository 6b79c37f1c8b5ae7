from enum import Enum
from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.models.files import DeleteFileReq, FileReq, FileRes
from app.models.user import UserClaims, UserRole
from app.services.file_service import FileService, file_extension
from app.services.middlewares import authorize, jwt_auth
from app.services.supabase_storage import SupabaseStorage
from app.utils.errors import api_errors

router = APIRouter(prefix="/v1/files", tags=["files"])


class FilesCode(Enum):
    UPLOAD = "files-001"
    DELETE = "files-002"


def get_file_service() -> FileService:
    return FileService(SupabaseStorage())


@router.post("/upload", response_model=List[FileRes], status_code=status.HTTP_201_CREATED)
def upload_files(
    files: List[UploadFile] = File(..., alias="files[]"),
    destination: str = Form(...),
    _: UserClaims = Depends(jwt_auth),
    service: FileService = Depends(get_file_service),
):
    with api_errors(FilesCode.UPLOAD):
        req = [
            FileReq(
                filename=f.filename or "",
                destination=destination,
                extension=file_extension(f.filename or ""),
                content=f.file.read(),
                content_type=f.content_type or "application/octet-stream",
            )
            for f in files
        ]
        return service.upload_files(req)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_files(
    req: List[DeleteFileReq],
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: FileService = Depends(get_file_service),
):
    with api_errors(FilesCode.DELETE):
        service.delete_files(req)
