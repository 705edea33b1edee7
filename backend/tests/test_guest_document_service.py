"""
Guest document storage and record consistency
"""
import asyncio
import re

import pytest

from hotelops.errors import GatewayError
from hotelops.services.guest_document_service import GuestDocumentService, build_object_path

BUCKET = "guest-documents"


@pytest.fixture
def service(gateway, cache):
    return GuestDocumentService(gateway, cache, bucket=BUCKET)


def test_object_path_format():
    path = build_object_path("guest-1", "passport.scan.PDF")
    assert re.fullmatch(r"guest-1/\d{13}_[a-z0-9]{6}\.PDF", path)
    assert build_object_path("guest-1", "noextension").endswith(".bin")


def test_upload_stores_object_then_record(service, gateway, receptionist):
    document = asyncio.run(service.upload_document(
        "guest-1", "passport.pdf", b"%PDF", "application/pdf", "passport", receptionist,
    ))

    assert [call[0] for call in gateway.calls] == ["upload", "insert"]
    assert document.guest_id == "guest-1"
    assert document.document_name == "passport.pdf"
    assert document.file_size == 4
    assert document.uploaded_by == receptionist.id
    assert (BUCKET, document.file_path) in gateway.objects


def test_insert_failure_removes_object_once(service, gateway, receptionist):
    insert_error = GatewayError("permission denied", status_code=403, code="42501")
    gateway.fail_on("insert", insert_error)

    with pytest.raises(GatewayError) as exc_info:
        asyncio.run(service.upload_document(
            "guest-1", "id.png", b"img", "image/png", "id_card", receptionist,
        ))

    assert exc_info.value is insert_error
    uploaded_path = gateway.calls_to("upload")[0][2]
    assert gateway.calls_to("remove") == [("remove", BUCKET, [uploaded_path])]
    assert gateway.objects == {}


def test_failed_cleanup_still_raises_insert_error(service, gateway, receptionist):
    insert_error = GatewayError("insert failed", status_code=500)
    gateway.fail_on("insert", insert_error)
    gateway.fail_on("remove", GatewayError("storage down", status_code=503))

    with pytest.raises(GatewayError) as exc_info:
        asyncio.run(service.upload_document(
            "guest-1", "id.png", b"img", "image/png", "id_card", receptionist,
        ))

    assert exc_info.value is insert_error
    assert len(gateway.calls_to("remove")) == 1


def test_upload_failure_skips_record(service, gateway, receptionist):
    gateway.fail_on("upload", GatewayError("too large", status_code=413))

    with pytest.raises(GatewayError):
        asyncio.run(service.upload_document(
            "guest-1", "big.pdf", b"x", "application/pdf", "passport", receptionist,
        ))
    assert gateway.calls_to("insert") == []
    assert gateway.calls_to("remove") == []


def _seed_document(gateway):
    gateway.objects[(BUCKET, "guest-1/1_abcdef.pdf")] = b"%PDF"
    gateway.seed("guest_documents", {
        "id": "doc-1",
        "guest_id": "guest-1",
        "document_type": "passport",
        "document_name": "passport.pdf",
        "file_path": "guest-1/1_abcdef.pdf",
        "uploaded_by": "receptionist-id",
    })


def test_delete_removes_object_then_record(service, gateway):
    _seed_document(gateway)

    deleted = asyncio.run(service.delete_document("doc-1"))

    assert deleted.id == "doc-1"
    assert [call[0] for call in gateway.calls] == ["select", "remove", "delete"]
    assert gateway.tables["guest_documents"] == []
    assert gateway.objects == {}


def test_delete_keeps_record_when_removal_fails(service, gateway):
    _seed_document(gateway)
    gateway.fail_on("remove", GatewayError("storage down", status_code=503))

    with pytest.raises(GatewayError):
        asyncio.run(service.delete_document("doc-1"))

    assert gateway.calls_to("delete") == []
    assert len(gateway.tables["guest_documents"]) == 1


def test_list_is_cached_until_upload(service, gateway, receptionist):
    _seed_document(gateway)

    asyncio.run(service.list_documents("guest-1"))
    asyncio.run(service.list_documents("guest-1"))
    assert len(gateway.calls_to("select")) == 1

    asyncio.run(service.upload_document(
        "guest-1", "visa.pdf", b"%PDF", "application/pdf", "visa", receptionist,
    ))
    documents = asyncio.run(service.list_documents("guest-1"))
    assert len(documents) == 2
    assert len(gateway.calls_to("select")) == 2


def test_signed_url_default_expiry(service, gateway):
    url = asyncio.run(service.get_document_url("guest-1/1_abcdef.pdf"))
    assert url.endswith("expires=3600")
    assert gateway.calls_to("create_signed_url") == [
        ("create_signed_url", BUCKET, "guest-1/1_abcdef.pdf", 3600),
    ]
