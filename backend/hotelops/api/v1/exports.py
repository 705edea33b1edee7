"""
Export API Endpoints
Download lists as CSV or JSON attachments.
"""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status

from hotelops.dependencies import (
    get_authorizer,
    get_financial_report_service,
    get_guest_service,
    get_invoice_service,
    get_payment_service,
    get_reservation_service,
    get_room_service,
    get_room_type_service,
)
from hotelops.services.authorization import Authorizer
from hotelops.services.financial_report_service import FinancialReportService
from hotelops.services.guest_service import GuestService
from hotelops.services.invoice_service import InvoiceService
from hotelops.services.payment_service import PaymentService
from hotelops.services.reservation_service import ReservationService
from hotelops.services.room_service import RoomService, RoomTypeService
from hotelops.utils.export import export_response

router = APIRouter()

# dataset -> permission needed to export it
EXPORT_PERMISSIONS = {
    "rooms": "rooms.view",
    "room-types": "rooms.view",
    "guests": "guests.view",
    "reservations": "reservations.view",
    "invoices": "billing.view",
    "payments": "billing.view",
    "outstanding-balances": "analytics.financial",
    "daily-revenue": "analytics.financial",
}


@router.get("/{dataset}")
async def export_dataset(
    dataset: str,
    fmt: str = Query("csv", alias="format", pattern="^(csv|json)$"),
    authorizer: Authorizer = Depends(get_authorizer),
    rooms: RoomService = Depends(get_room_service),
    room_types: RoomTypeService = Depends(get_room_type_service),
    guests: GuestService = Depends(get_guest_service),
    reservations: ReservationService = Depends(get_reservation_service),
    invoices: InvoiceService = Depends(get_invoice_service),
    payments: PaymentService = Depends(get_payment_service),
    reports: FinancialReportService = Depends(get_financial_report_service),
):
    """
    Export a dataset

    Datasets: rooms, room-types, guests, reservations, invoices, payments,
    outstanding-balances, daily-revenue. The file is named
    ``{dataset}-{YYYY-MM-DD}.{format}``.
    """
    permission = EXPORT_PERMISSIONS.get(dataset)
    if permission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown dataset: {dataset}")
    if not authorizer.has_permission(permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission required: {permission}",
        )

    if dataset == "rooms":
        data = await rooms.list_rooms()
    elif dataset == "room-types":
        data = await room_types.list_room_types()
    elif dataset == "guests":
        data = await guests.list_guests()
    elif dataset == "reservations":
        data = await reservations.list_reservations()
    elif dataset == "invoices":
        data = await invoices.list_invoices()
    elif dataset == "payments":
        data = await payments.list_payments()
    elif dataset == "outstanding-balances":
        data = await reports.outstanding_balances()
    else:
        data = await reports.daily_revenue()

    return export_response(data, f"{dataset}-{date.today().isoformat()}", fmt)
