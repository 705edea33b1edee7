"""
Guest Document Service
Identity documents and other guest files, kept in object storage with one
``guest_documents`` row per stored object.

Upload stores the object first and then inserts the row; if the insert fails
the object is removed again. Delete removes the object first and only then
the row, so a failed removal leaves the row pointing at a live object.
Neither sequence is transactional: a failed compensating removal leaves an
orphaned object, logged with its path.
"""
from typing import List, Optional
import logging
import secrets
import string
import time

from hotelops.config import settings
from hotelops.errors import GatewayError
from hotelops.schemas.guest_document import GuestDocument
from hotelops.schemas.profile import Profile
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, parse_row, parse_rows

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def build_object_path(guest_id: str, filename: str) -> str:
    """``{guest_id}/{epoch_ms}_{random}.{ext}``"""
    extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{guest_id}/{int(time.time() * 1000)}_{suffix}.{extension}"


class GuestDocumentService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache, bucket: Optional[str] = None):
        self.gateway = gateway
        self.cache = cache
        self.bucket = bucket or settings.GUEST_DOCUMENTS_BUCKET

    async def list_documents(self, guest_id: str) -> List[GuestDocument]:
        async def load():
            data = await self.gateway.select(
                "guest_documents", filters=[eq("guest_id", guest_id)],
                order="created_at", ascending=False,
            )
            return parse_rows(GuestDocument, data)

        return await self.cache.get_or_load(("guest-documents", guest_id), load)

    async def get_document(self, document_id: str) -> GuestDocument:
        data = await self.gateway.select("guest_documents", filters=[eq("id", document_id)], single=True)
        return parse_row(GuestDocument, data)

    async def upload_document(
        self,
        guest_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        document_type: str,
        actor: Profile,
    ) -> GuestDocument:
        """
        Store a file and record it against the guest.

        Args:
            guest_id: Owning guest
            filename: Original file name, kept as the document name
            content: File bytes
            content_type: Declared MIME type
            document_type: e.g. "passport", "id_card"
            actor: Uploading staff member

        Returns:
            The created document row

        Raises:
            GatewayError: from the upload, or the original insert error after
                the stored object has been removed (or its removal logged)
        """
        path = build_object_path(guest_id, filename)

        await self.gateway.upload(self.bucket, path, content, content_type, cache_control="3600", upsert=False)

        try:
            row = await self.gateway.insert("guest_documents", {
                "guest_id": guest_id,
                "document_type": document_type,
                "document_name": filename,
                "file_path": path,
                "file_size": len(content),
                "mime_type": content_type,
                "uploaded_by": actor.id,
            })
        except GatewayError as insert_error:
            logger.warning(
                "Document record insert failed for guest %s, removing stored object %s", guest_id, path,
            )
            try:
                await self.gateway.remove(self.bucket, [path])
            except GatewayError as cleanup_error:
                logger.error(
                    "Orphaned object %s/%s: rollback removal failed: %s",
                    self.bucket, path, cleanup_error.message,
                )
            raise insert_error

        self.cache.invalidate_for("guest_document.upload", guest_id=guest_id)
        return parse_row(GuestDocument, row)

    async def delete_document(self, document_id: str) -> GuestDocument:
        """Remove the stored object, then the row. Returns the deleted row."""
        document = await self.get_document(document_id)

        try:
            await self.gateway.remove(self.bucket, [document.file_path])
        except GatewayError as e:
            logger.error(f"Could not remove stored object {document.file_path}; keeping its record: {e.message}")
            raise

        await self.gateway.delete("guest_documents", filters=[eq("id", document_id)])
        self.cache.invalidate_for("guest_document.delete", guest_id=document.guest_id)
        return document

    async def get_document_url(self, file_path: str, expires_in: Optional[int] = None) -> str:
        """Time-limited download URL for a stored document."""
        return await self.gateway.create_signed_url(
            self.bucket, file_path, expires_in or settings.SIGNED_URL_EXPIRES_IN,
        )
