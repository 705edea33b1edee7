"""
Guest Document API Endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from hotelops.config import settings
from hotelops.dependencies import get_guest_document_service, require_permission
from hotelops.schemas.guest_document import GuestDocument, SignedUrlResponse
from hotelops.schemas.profile import Profile
from hotelops.services.guest_document_service import GuestDocumentService

router = APIRouter()


@router.get("/guests/{guest_id}/documents", response_model=List[GuestDocument])
async def list_guest_documents(
    guest_id: str,
    actor: Profile = Depends(require_permission("guests.view")),
    service: GuestDocumentService = Depends(get_guest_document_service),
):
    return await service.list_documents(guest_id)


@router.post(
    "/guests/{guest_id}/documents",
    response_model=GuestDocument,
    status_code=status.HTTP_201_CREATED,
)
async def upload_guest_document(
    guest_id: str,
    file: UploadFile = File(...),
    document_type: str = Form(...),
    actor: Profile = Depends(require_permission("guests.update")),
    service: GuestDocumentService = Depends(get_guest_document_service),
):
    """
    Upload a document for a guest

    The file is stored first and then recorded. If recording fails the stored
    file is removed again and the recording error is returned.
    """
    content = await file.read()
    return await service.upload_document(
        guest_id=guest_id,
        filename=file.filename or "document",
        content=content,
        content_type=file.content_type,
        document_type=document_type,
        actor=actor,
    )


@router.get("/documents/{document_id}/url", response_model=SignedUrlResponse)
async def get_document_url(
    document_id: str,
    expires_in: Optional[int] = Query(None, gt=0),
    actor: Profile = Depends(require_permission("guests.view")),
    service: GuestDocumentService = Depends(get_guest_document_service),
):
    """Time-limited download link"""
    document = await service.get_document(document_id)
    expires_in = expires_in or settings.SIGNED_URL_EXPIRES_IN
    signed_url = await service.get_document_url(document.file_path, expires_in)
    return SignedUrlResponse(signed_url=signed_url, expires_in=expires_in)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_guest_document(
    document_id: str,
    actor: Profile = Depends(require_permission("guests.update")),
    service: GuestDocumentService = Depends(get_guest_document_service),
):
    await service.delete_document(document_id)
