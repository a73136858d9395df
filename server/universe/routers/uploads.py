from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from universe.auth.deps import get_backend_client, require_role
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.schemas.entities import UploadedFile
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/uploads", tags=["uploads"])

UPLOAD_ROLES = (Role.CLUB_ADMIN, Role.SUPER_ADMIN)

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"}


@router.post("/image", response_model=UploadedFile, status_code=status.HTTP_200_OK)
def upload_image(
    file: UploadFile = File(...),
    _: SessionUser = Depends(require_role(*UPLOAD_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> UploadedFile:
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid image type. Allowed types: PNG, JPEG, GIF, WEBP.",
        )
    try:
        content = file.file.read()
    finally:
        file.file.close()
    return client.upload_image(file.filename or "upload", content, content_type)
