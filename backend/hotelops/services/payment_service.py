"""
Payment Service
Payments against invoices (single, split and partial) and the refund workflow:
request, approve, process.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List
import logging

from hotelops.errors import BillingValidationError, GatewayError, RefundPermissionError
from hotelops.schemas.billing import (
    InvoiceStatus, Payment, PaymentCreate, PaymentFilters, PaymentStatus, PaymentUpdate,
    PaymentWithRefunds, Refund, RefundRequest, RefundStatus, SplitPaymentPart,
)
from hotelops.schemas.profile import Profile
from hotelops.services.authorization import Authorizer
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, gte, in_, lte, parse_row, parse_rows

logger = logging.getLogger(__name__)

PAYMENT_DETAILS = (
    "*,"
    "invoice:invoices!invoice_id(id,invoice_number,total_amount,"
    "reservation:reservations!reservation_id(id,guest:guests!guest_id(first_name,last_name)))"
)

# Refunds that hold part of a payment's amount
OPEN_REFUND_STATUSES = [
    RefundStatus.PENDING.value,
    RefundStatus.APPROVED.value,
    RefundStatus.COMPLETED.value,
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _total(rows: List[dict], column: str = "amount") -> Decimal:
    return sum((Decimal(str(row[column])) for row in rows), Decimal("0"))


def invoice_status_for(total: Decimal, paid: Decimal) -> InvoiceStatus:
    """Settlement status from amount paid: paid in full, part paid, or still pending."""
    if total > 0 and paid >= total:
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.PENDING


class PaymentService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def list_payments(self, filters: PaymentFilters = None) -> List[PaymentWithRefunds]:
        """List payments, latest first, each with its invoice and refunds."""
        filters = filters or PaymentFilters()
        predicates = []
        if filters.payment_method and filters.payment_method != "all":
            predicates.append(eq("payment_method", filters.payment_method))
        if filters.status and filters.status != "all":
            predicates.append(eq("status", filters.status))
        if filters.from_date:
            predicates.append(gte("payment_date", filters.from_date))
        if filters.to_date:
            predicates.append(lte("payment_date", filters.to_date))
        if filters.processed_by:
            predicates.append(eq("processed_by", filters.processed_by))

        async def load():
            data = await self.gateway.select(
                "payments", columns=PAYMENT_DETAILS, filters=predicates,
                order="payment_date", ascending=False,
            )
            payments = parse_rows(PaymentWithRefunds, data)
            if not payments:
                return payments

            refund_rows = await self.gateway.select(
                "refunds", filters=[in_("payment_id", [p.id for p in payments])],
                order="created_at", ascending=False,
            )
            refunds: Dict[str, List[Refund]] = {}
            for refund in parse_rows(Refund, refund_rows):
                refunds.setdefault(refund.payment_id, []).append(refund)
            for payment in payments:
                payment.refunds = refunds.get(payment.id, [])
            return payments

        return await self.cache.get_or_load(("payments", filters.model_dump_json()), load)

    async def payments_for_invoice(self, invoice_id: str) -> List[Payment]:
        data = await self.gateway.select("payments", filters=[eq("invoice_id", invoice_id)], order="payment_date")
        return parse_rows(Payment, data)

    async def _balance(self, invoice_id: str) -> tuple:
        """(invoice total, amount already paid by completed payments)"""
        invoice = await self.gateway.select(
            "invoices", columns="total_amount", filters=[eq("id", invoice_id)], single=True,
        )
        paid_rows = await self.gateway.select(
            "payments", columns="amount",
            filters=[eq("invoice_id", invoice_id), eq("status", PaymentStatus.COMPLETED.value)],
        )
        return Decimal(str(invoice["total_amount"])), _total(paid_rows)

    async def _sync_invoice_status(self, invoice_id: str) -> None:
        total, paid = await self._balance(invoice_id)
        await self.gateway.update(
            "invoices",
            {"status": invoice_status_for(total, paid), "updated_at": _now()},
            filters=[eq("id", invoice_id)],
        )

    async def process_payment(self, data: PaymentCreate, actor: Profile) -> Payment:
        """
        Record a payment against an invoice.

        Raises:
            BillingValidationError: the payment would take the invoice past its total
            RecordNotFound: no such invoice
        """
        total, paid = await self._balance(data.invoice_id)
        if paid + data.amount > total:
            raise BillingValidationError(
                f"Payment amount would exceed invoice total. Remaining balance: {total - paid}"
            )

        values = data.model_dump()
        values["processed_by"] = actor.id
        values["payment_date"] = _now()
        try:
            row = await self.gateway.insert("payments", values)
            await self._sync_invoice_status(data.invoice_id)
        except GatewayError as e:
            logger.error(f"Error processing payment on invoice {data.invoice_id}: {e.message}")
            raise
        finally:
            self.cache.invalidate_for("payment.create", invoice_id=data.invoice_id)

        payment = parse_row(Payment, row)
        logger.info(
            "Payment %s of %s (%s) recorded on invoice %s by %s",
            payment.id, payment.amount, payment.payment_method.value, payment.invoice_id, actor.id,
        )
        return payment

    async def process_split_payment(
        self, invoice_id: str, parts: List[SplitPaymentPart], actor: Profile,
    ) -> List[Payment]:
        """
        Settle an invoice with several payment methods at once.

        The parts are checked together against the remaining balance and
        written in one insert, so either all of them are recorded or none.
        """
        if not parts:
            raise BillingValidationError("A split payment needs at least one part")
        total, paid = await self._balance(invoice_id)
        if paid + sum((p.amount for p in parts), Decimal("0")) > total:
            raise BillingValidationError("Total payment amount exceeds invoice balance")

        now = _now()
        rows = [
            {
                "invoice_id": invoice_id,
                "amount": part.amount,
                "payment_method": part.payment_method,
                "transaction_ref": part.transaction_ref or None,
                "notes": part.notes or None,
                "status": PaymentStatus.COMPLETED,
                "processed_by": actor.id,
                "payment_date": now,
            }
            for part in parts
        ]
        try:
            data = await self.gateway.insert("payments", rows, single=False)
            await self._sync_invoice_status(invoice_id)
        except GatewayError as e:
            logger.error(f"Error processing split payment on invoice {invoice_id}: {e.message}")
            raise
        finally:
            self.cache.invalidate_for("payment.create", invoice_id=invoice_id)

        return parse_rows(Payment, data)

    async def update_payment(self, payment_id: str, data: PaymentUpdate) -> Payment:
        values = data.model_dump(exclude_unset=True)
        values["updated_at"] = _now()
        row = await self.gateway.update("payments", values, filters=[eq("id", payment_id)], single=True)
        payment = parse_row(Payment, row)
        if "status" in values:
            await self._sync_invoice_status(payment.invoice_id)
        self.cache.invalidate_for("payment.update")
        return payment

    async def request_refund(self, payment_id: str, data: RefundRequest, actor: Profile) -> Refund:
        """
        Open a refund for part or all of a payment.

        Refunds already pending, approved or completed count against the
        payment's amount.
        """
        payment = await self.gateway.select(
            "payments", columns="amount,status", filters=[eq("id", payment_id)], single=True,
        )
        if payment["status"] != PaymentStatus.COMPLETED.value:
            raise BillingValidationError("Only completed payments can be refunded")

        existing = await self.gateway.select(
            "refunds", columns="amount",
            filters=[eq("payment_id", payment_id), in_("status", OPEN_REFUND_STATUSES)],
        )
        if _total(existing) + data.amount > Decimal(str(payment["amount"])):
            raise BillingValidationError("Refund amount exceeds payment amount")

        values = data.model_dump()
        values.update(payment_id=payment_id, status=RefundStatus.PENDING, requested_by=actor.id)
        row = await self.gateway.insert("refunds", values)
        self.cache.invalidate_for("refund.request")

        refund = parse_row(Refund, row)
        logger.info("Refund %s of %s requested on payment %s by %s", refund.id, refund.amount, payment_id, actor.id)
        return refund

    async def _refund_in(self, refund_id: str, status: RefundStatus) -> dict:
        row = await self.gateway.select("refunds", filters=[eq("id", refund_id)], single=True)
        if row["status"] != status.value:
            raise BillingValidationError(f"Refund is {row['status']}, expected {status.value}")
        return row

    async def approve_refund(self, refund_id: str, actor: Profile) -> Refund:
        """
        Approve a pending refund.

        Raises:
            RefundPermissionError: the actor is not a manager or admin
            BillingValidationError: the refund is not pending
        """
        if not Authorizer(actor).has_full_access:
            raise RefundPermissionError("Only managers and admins can approve refunds")
        await self._refund_in(refund_id, RefundStatus.PENDING)

        now = _now()
        row = await self.gateway.update(
            "refunds",
            {"status": RefundStatus.APPROVED, "approved_by": actor.id, "approved_at": now, "updated_at": now},
            filters=[eq("id", refund_id)],
            single=True,
        )
        self.cache.invalidate_for("refund.approve")
        return parse_row(Refund, row)

    async def process_refund(self, refund_id: str, actor: Profile, transaction_ref: str = None) -> Refund:
        """
        Complete an approved refund. A payment refunded in full is marked refunded
        and its invoice's settlement status re-derived.
        """
        current = await self._refund_in(refund_id, RefundStatus.APPROVED)

        now = _now()
        try:
            row = await self.gateway.update(
                "refunds",
                {
                    "status": RefundStatus.COMPLETED,
                    "processed_by": actor.id,
                    "processed_at": now,
                    "transaction_ref": transaction_ref or None,
                    "updated_at": now,
                },
                filters=[eq("id", refund_id)],
                single=True,
            )

            payment_id = current["payment_id"]
            payment = await self.gateway.select(
                "payments", columns="amount,invoice_id", filters=[eq("id", payment_id)], single=True,
            )
            completed = await self.gateway.select(
                "refunds", columns="amount",
                filters=[eq("payment_id", payment_id), eq("status", RefundStatus.COMPLETED.value)],
            )
            if _total(completed) >= Decimal(str(payment["amount"])):
                await self.gateway.update(
                    "payments", {"status": PaymentStatus.REFUNDED, "updated_at": now},
                    filters=[eq("id", payment_id)],
                )
                await self._sync_invoice_status(payment["invoice_id"])
        except GatewayError as e:
            logger.error(f"Error processing refund {refund_id}: {e.message}")
            raise
        finally:
            self.cache.invalidate_for("refund.process")

        logger.info("Refund %s processed by %s", refund_id, actor.id)
        return parse_row(Refund, row)
