"""
Payment and Refund API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from hotelops.dependencies import get_payment_service, require_permission
from hotelops.schemas.billing import (
    Payment,
    PaymentCreate,
    PaymentFilters,
    PaymentUpdate,
    PaymentWithRefunds,
    Refund,
    RefundProcess,
    RefundRequest,
)
from hotelops.schemas.profile import Profile
from hotelops.services.payment_service import PaymentService

router = APIRouter()


@router.get("", response_model=List[PaymentWithRefunds])
async def list_payments(
    payment_method: Optional[str] = Query(None, description="Payment method or 'all'"),
    status_filter: Optional[str] = Query(None, alias="status", description="Payment status or 'all'"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    processed_by: Optional[str] = Query(None),
    actor: Profile = Depends(require_permission("billing.view")),
    service: PaymentService = Depends(get_payment_service),
):
    """
    List payments, latest first, with their invoice and refunds
    """
    filters = PaymentFilters(
        payment_method=payment_method,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        processed_by=processed_by,
    )
    return await service.list_payments(filters)


@router.post("", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def process_payment(
    data: PaymentCreate,
    actor: Profile = Depends(require_permission("billing.process_payment")),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Take a full or partial payment on an invoice

    Rejected (422) when it would take the invoice past its total.
    """
    return await service.process_payment(data, actor)


@router.patch("/{payment_id}", response_model=Payment)
async def update_payment(
    payment_id: str,
    data: PaymentUpdate,
    actor: Profile = Depends(require_permission("billing.process_payment")),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.update_payment(payment_id, data)


@router.post("/{payment_id}/refunds", response_model=Refund, status_code=status.HTTP_201_CREATED)
async def request_refund(
    payment_id: str,
    data: RefundRequest,
    actor: Profile = Depends(require_permission("billing.refund")),
    service: PaymentService = Depends(get_payment_service),
):
    """Open a pending refund against a completed payment"""
    return await service.request_refund(payment_id, data, actor)


@router.post("/refunds/{refund_id}/approve", response_model=Refund)
async def approve_refund(
    refund_id: str,
    actor: Profile = Depends(require_permission("billing.refund")),
    service: PaymentService = Depends(get_payment_service),
):
    """Approve a pending refund (managers and admins only)"""
    return await service.approve_refund(refund_id, actor)


@router.post("/refunds/{refund_id}/process", response_model=Refund)
async def process_refund(
    refund_id: str,
    data: RefundProcess,
    actor: Profile = Depends(require_permission("billing.refund")),
    service: PaymentService = Depends(get_payment_service),
):
    """Pay out an approved refund"""
    return await service.process_refund(refund_id, actor, data.transaction_ref)
