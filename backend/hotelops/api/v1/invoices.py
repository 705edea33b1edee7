"""
Invoice API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from hotelops.dependencies import get_invoice_service, get_payment_service, require_permission
from hotelops.schemas.billing import (
    Invoice,
    InvoiceCreate,
    InvoiceFromReservation,
    InvoiceLineItem,
    InvoiceUpdate,
    InvoiceFilters,
    InvoiceWithDetails,
    LineItemCreate,
    Payment,
    RoomChargeCalculation,
    SplitPaymentRequest,
)
from hotelops.schemas.profile import Profile
from hotelops.services.invoice_service import InvoiceService
from hotelops.services.payment_service import PaymentService

router = APIRouter()


@router.get("", response_model=List[InvoiceWithDetails])
async def list_invoices(
    status_filter: Optional[str] = Query(None, alias="status", description="Invoice status or 'all'"),
    invoice_number: Optional[str] = Query(None),
    guest_name: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None, description="Issued on or after"),
    to_date: Optional[date] = Query(None, description="Issued on or before"),
    has_balance: Optional[bool] = Query(None),
    actor: Profile = Depends(require_permission("billing.view")),
    service: InvoiceService = Depends(get_invoice_service),
):
    """
    List invoices, newest first, with line items, completed payments and balance due
    """
    filters = InvoiceFilters(
        status=status_filter,
        invoice_number=invoice_number,
        guest_name=guest_name,
        from_date=from_date,
        to_date=to_date,
        has_balance=has_balance,
    )
    return await service.list_invoices(filters)


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    actor: Profile = Depends(require_permission("billing.create")),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Manual invoice, numbered by the backend and issued today"""
    return await service.create_invoice(data)


@router.post("/from-reservation", status_code=status.HTTP_201_CREATED)
async def create_invoice_for_reservation(
    data: InvoiceFromReservation,
    actor: Profile = Depends(require_permission("billing.create")),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Generate a stay's invoice with its room charges"""
    invoice_id = await service.create_invoice_for_reservation(data.reservation_id, data.tax_rate)
    return {"invoice_id": invoice_id}


@router.get("/room-charges", response_model=RoomChargeCalculation)
async def room_charges(
    room_type_id: str = Query(...),
    check_in_date: date = Query(...),
    check_out_date: date = Query(...),
    actor: Profile = Depends(require_permission("billing.view")),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Room charges for a stay after pricing rules"""
    if check_out_date <= check_in_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Check-out date must be after check-in date",
        )
    charges = await service.calculate_room_charges(room_type_id, check_in_date, check_out_date)
    if charges is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No room charges for this stay")
    return charges


@router.get("/{invoice_id}", response_model=InvoiceWithDetails)
async def get_invoice(
    invoice_id: str,
    actor: Profile = Depends(require_permission("billing.view")),
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.get_invoice(invoice_id)


@router.patch("/{invoice_id}", response_model=Invoice)
async def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    actor: Profile = Depends(require_permission("billing.update")),
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.update_invoice(invoice_id, data)


@router.post("/{invoice_id}/line-items", response_model=InvoiceLineItem, status_code=status.HTTP_201_CREATED)
async def add_line_item(
    invoice_id: str,
    item: LineItemCreate,
    actor: Profile = Depends(require_permission("billing.update")),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Post a charge to the invoice and re-derive its totals"""
    return await service.add_line_item(invoice_id, item)


@router.delete("/{invoice_id}/line-items/{line_item_id}", response_model=Invoice)
async def remove_line_item(
    invoice_id: str,
    line_item_id: str,
    actor: Profile = Depends(require_permission("billing.update")),
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.remove_line_item(invoice_id, line_item_id)


@router.post("/{invoice_id}/recalculate", response_model=Invoice)
async def recalculate_totals(
    invoice_id: str,
    actor: Profile = Depends(require_permission("billing.update")),
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.recalculate_totals(invoice_id)


@router.get("/{invoice_id}/payments", response_model=List[Payment])
async def invoice_payments(
    invoice_id: str,
    actor: Profile = Depends(require_permission("billing.view")),
    payments: PaymentService = Depends(get_payment_service),
):
    return await payments.payments_for_invoice(invoice_id)


@router.post("/{invoice_id}/split-payment", response_model=List[Payment], status_code=status.HTTP_201_CREATED)
async def split_payment(
    invoice_id: str,
    data: SplitPaymentRequest,
    actor: Profile = Depends(require_permission("billing.process_payment")),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Settle an invoice with several payment methods

    Rejected (422) when the parts together exceed the remaining balance.
    """
    return await payments.process_split_payment(invoice_id, data.payments, actor)
