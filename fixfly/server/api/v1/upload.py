"""
Upload Endpoints.

Image uploads used for spare-part photos on completed jobs.
"""

from fastapi import APIRouter, File, UploadFile

from fixfly.core.models.io.uploads import UploadRead
from fixfly.server.services.deps import AnyPrincipalDep, UploadServiceDep

router = APIRouter()


@router.post(
    "/image",
    response_model=UploadRead,
    summary="Upload Image",
    description="Store a JPEG, PNG or WebP image of at most 5 MB and return its public URL.",
    responses={400: {"description": "Unsupported file type or file too large"}},
)
async def upload_image(
    principal: AnyPrincipalDep, uploads: UploadServiceDep, file: UploadFile = File(...)
) -> UploadRead:
    return await uploads.save_image(file)
