"""
Invoice Service
Invoices with their line items and completed payments, room-charge quotes
and invoice generation through the backend's billing procedures.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from hotelops.errors import BillingValidationError, GatewayError, GatewayResponseError
from hotelops.schemas.billing import (
    Invoice, InvoiceCreate, InvoiceFilters, InvoiceLineItem, InvoiceUpdate, InvoiceWithDetails,
    LineItemCreate, Payment, PaymentStatus, RoomChargeCalculation,
)
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, any_ilike, eq, gte, in_, lte, parse_row, parse_rows
from hotelops.services.pricing import round_money

logger = logging.getLogger(__name__)

INVOICE_DETAILS = (
    "*,"
    "reservation:reservations!reservation_id(id,guest_id,room_id,check_in_date,check_out_date,"
    "guest:guests!guest_id(id,first_name,last_name,email,phone),"
    "room:rooms!room_id(id,room_number,room_type:room_types!room_type_id(id,name)))"
)

HUNDRED = Decimal("100")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _matches_guest(invoice: InvoiceWithDetails, term: str) -> bool:
    guest = invoice.reservation.guest if invoice.reservation else None
    if guest is None:
        return False
    return term in f"{guest.first_name} {guest.last_name}".lower()


def line_item_values(invoice_id: str, item: LineItemCreate) -> dict:
    """Row for a new line item: extended price and its tax, each rounded to the cent."""
    total_price = round_money(item.quantity * item.unit_price)
    values = item.model_dump()
    values.update(
        invoice_id=invoice_id,
        total_price=total_price,
        tax_amount=round_money(total_price * item.tax_rate / HUNDRED),
        posting_date=item.posting_date or date.today(),
    )
    return values


class InvoiceService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def _attach_details(self, invoices: List[InvoiceWithDetails]) -> List[InvoiceWithDetails]:
        """Fill line items, completed payments, amount paid and balance due for a page of invoices."""
        if not invoices:
            return invoices
        ids = [invoice.id for invoice in invoices]

        item_rows = await self.gateway.select(
            "invoice_line_items", filters=[in_("invoice_id", ids)], order="posting_date",
        )
        payment_rows = await self.gateway.select(
            "payments",
            filters=[in_("invoice_id", ids), eq("status", PaymentStatus.COMPLETED.value)],
            order="payment_date",
        )

        items: Dict[str, List[InvoiceLineItem]] = {}
        for item in parse_rows(InvoiceLineItem, item_rows):
            items.setdefault(item.invoice_id, []).append(item)
        payments: Dict[str, List[Payment]] = {}
        for payment in parse_rows(Payment, payment_rows):
            payments.setdefault(payment.invoice_id, []).append(payment)

        for invoice in invoices:
            invoice.line_items = items.get(invoice.id, [])
            invoice.payments = payments.get(invoice.id, [])
            invoice.total_paid = sum((p.amount for p in invoice.payments), Decimal("0"))
            invoice.balance_due = invoice.total_amount - invoice.total_paid
        return invoices

    async def list_invoices(self, filters: InvoiceFilters = None) -> List[InvoiceWithDetails]:
        """
        List invoices, newest first, each with its line items and completed payments.

        Status, invoice number and issue date are filtered by the backend. Guest
        name (matched against the guest's full name) and outstanding balance
        are matched here.
        """
        filters = filters or InvoiceFilters()
        predicates = []
        if filters.status and filters.status != "all":
            predicates.append(eq("status", filters.status))
        if filters.invoice_number:
            predicates.append(any_ilike(("invoice_number",), filters.invoice_number))
        if filters.from_date:
            predicates.append(gte("issue_date", filters.from_date))
        if filters.to_date:
            predicates.append(lte("issue_date", filters.to_date))

        async def load():
            data = await self.gateway.select(
                "invoices", columns=INVOICE_DETAILS, filters=predicates,
                order="created_at", ascending=False,
            )
            invoices = await self._attach_details(parse_rows(InvoiceWithDetails, data))

            if filters.guest_name:
                term = filters.guest_name.lower()
                invoices = [i for i in invoices if _matches_guest(i, term)]
            if filters.has_balance is not None:
                invoices = [i for i in invoices if (i.balance_due > 0) == filters.has_balance]
            return invoices

        return await self.cache.get_or_load(("invoices", filters.model_dump_json()), load)

    async def get_invoice(self, invoice_id: str) -> InvoiceWithDetails:
        async def load():
            data = await self.gateway.select(
                "invoices", columns=INVOICE_DETAILS, filters=[eq("id", invoice_id)], single=True,
            )
            return (await self._attach_details([parse_row(InvoiceWithDetails, data)]))[0]

        return await self.cache.get_or_load(("invoice", invoice_id), load)

    async def invoices_for_reservation(self, reservation_id: str) -> List[Invoice]:
        data = await self.gateway.select(
            "invoices", filters=[eq("reservation_id", reservation_id)], order="created_at", ascending=False,
        )
        return parse_rows(Invoice, data)

    async def calculate_room_charges(
        self, room_type_id: str, check_in: date, check_out: date,
    ) -> Optional[RoomChargeCalculation]:
        """Room charges for a stay after pricing rules, or None when the backend has no quote."""
        data = await self.gateway.rpc("calculate_room_charges", {
            "p_room_type_id": room_type_id,
            "p_check_in_date": check_in,
            "p_check_out_date": check_out,
        })
        if isinstance(data, list):
            data = data[0] if data else None
        return parse_row(RoomChargeCalculation, data) if data else None

    async def create_invoice_for_reservation(self, reservation_id: str, tax_rate: Decimal = Decimal("16.0")) -> str:
        """
        Generate the invoice for a stay, with its room-charge line items.

        Returns:
            The new invoice's id
        """
        try:
            invoice_id = await self.gateway.rpc("create_invoice_for_reservation", {
                "p_reservation_id": reservation_id,
                "p_tax_rate": tax_rate,
            })
        except GatewayError as e:
            logger.error(f"Error creating invoice for reservation {reservation_id}: {e.message}")
            raise
        if not isinstance(invoice_id, str) or not invoice_id:
            raise GatewayResponseError("Backend did not return an invoice id", code="invalid_response")

        self.cache.invalidate_for("invoice.create")
        logger.info("Invoice %s generated for reservation %s", invoice_id, reservation_id)
        return invoice_id

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """Manual invoice, numbered by the backend and issued today."""
        invoice_number = await self.gateway.rpc("generate_invoice_number", {})
        if not isinstance(invoice_number, str) or not invoice_number:
            raise GatewayResponseError("Backend did not return an invoice number", code="invalid_response")

        values = data.model_dump()
        values["invoice_number"] = invoice_number
        values["issue_date"] = date.today()
        try:
            row = await self.gateway.insert("invoices", values)
        except GatewayError as e:
            logger.error(f"Error creating invoice {invoice_number}: {e.message}")
            raise

        self.cache.invalidate_for("invoice.create")
        return parse_row(Invoice, row)

    async def update_invoice(self, invoice_id: str, data: InvoiceUpdate) -> Invoice:
        """Apply changes. A new discount re-derives the total from the line items."""
        values = data.model_dump(exclude_unset=True)
        discount = values.pop("discount_amount", None)
        if discount is not None:
            await self.recalculate_totals(invoice_id, discount=discount)
        values["updated_at"] = _now()
        row = await self.gateway.update("invoices", values, filters=[eq("id", invoice_id)], single=True)
        self.cache.invalidate_for("invoice.update", invoice_id=invoice_id)
        return parse_row(Invoice, row)

    async def add_line_item(self, invoice_id: str, item: LineItemCreate) -> InvoiceLineItem:
        row = await self.gateway.insert("invoice_line_items", line_item_values(invoice_id, item))
        await self.recalculate_totals(invoice_id)
        return parse_row(InvoiceLineItem, row)

    async def remove_line_item(self, invoice_id: str, line_item_id: str) -> Invoice:
        await self.gateway.delete(
            "invoice_line_items", filters=[eq("id", line_item_id), eq("invoice_id", invoice_id)],
        )
        return await self.recalculate_totals(invoice_id)

    async def recalculate_totals(self, invoice_id: str, discount: Optional[Decimal] = None) -> Invoice:
        """
        Re-derive subtotal, tax and total from the line items.

        total = subtotal + tax - discount, where discount is the one given or
        else the invoice's current one. A discount larger than the charges is
        rejected before anything is written.
        """
        try:
            item_rows = await self.gateway.select(
                "invoice_line_items", columns="total_price,tax_amount", filters=[eq("invoice_id", invoice_id)],
            )
            invoice_row = await self.gateway.select(
                "invoices", columns="discount_amount", filters=[eq("id", invoice_id)], single=True,
            )
        except GatewayError as e:
            logger.error(f"Error reading invoice {invoice_id} for totals: {e.message}")
            raise

        subtotal = sum((Decimal(str(r["total_price"])) for r in item_rows), Decimal("0"))
        tax_amount = sum((Decimal(str(r["tax_amount"] or 0)) for r in item_rows), Decimal("0"))
        if discount is None:
            discount = Decimal(str(invoice_row.get("discount_amount") or 0))
        total = subtotal + tax_amount - discount
        if total < 0:
            raise BillingValidationError("Discount exceeds the invoice charges")

        row = await self.gateway.update(
            "invoices",
            {
                "subtotal": round_money(subtotal),
                "tax_amount": round_money(tax_amount),
                "discount_amount": round_money(discount),
                "total_amount": round_money(total),
                "updated_at": _now(),
            },
            filters=[eq("id", invoice_id)],
            single=True,
        )
        self.cache.invalidate_for("invoice.line_items", invoice_id=invoice_id)
        return parse_row(Invoice, row)
