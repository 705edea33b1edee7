"""
Financial Report Service
Revenue, outstanding balance and tax figures read from the backend's
reporting views (daily_revenue_summary, outstanding_balances,
revenue_by_room_type, financial_transactions).
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from hotelops.errors import RecordNotFound
from hotelops.schemas.billing import InvoiceStatus
from hotelops.schemas.financial import (
    DailyRevenueSummary, FinancialTransaction, OutstandingBalance, PaymentMethodBreakdown,
    PaymentSummary, RevenueByRoomType, TaxReport, TaxReportInvoice,
)
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import Filter, SupabaseGateway, eq, gte, in_, lte, parse_row, parse_rows

logger = logging.getLogger(__name__)

REPORT_TTL = 300.0


def _range(column: str, from_date: Optional[date], to_date: Optional[date]) -> List[Filter]:
    predicates = []
    if from_date:
        predicates.append(gte(column, from_date))
    if to_date:
        predicates.append(lte(column, to_date))
    return predicates


def _key(report: str, *parts) -> tuple:
    return ("financial", report) + tuple(p.isoformat() if isinstance(p, date) else p for p in parts)


class FinancialReportService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def daily_revenue(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None,
    ) -> List[DailyRevenueSummary]:
        """Per-day takings by payment method, latest day first."""
        async def load():
            data = await self.gateway.select(
                "daily_revenue_summary", filters=_range("business_date", from_date, to_date),
                order="business_date", ascending=False,
            )
            return parse_rows(DailyRevenueSummary, data)

        return await self.cache.get_or_load(_key("daily-revenue", from_date, to_date), load, ttl=REPORT_TTL)

    async def outstanding_balances(self) -> List[OutstandingBalance]:
        """Invoices with money still owed, soonest due first."""
        async def load():
            data = await self.gateway.select("outstanding_balances", order="due_date")
            return parse_rows(OutstandingBalance, data)

        return await self.cache.get_or_load(_key("outstanding"), load, ttl=REPORT_TTL)

    async def revenue_by_room_type(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None,
    ) -> List[RevenueByRoomType]:
        async def load():
            data = await self.gateway.select(
                "revenue_by_room_type", filters=_range("month", from_date, to_date),
                order="month", ascending=False,
            )
            return parse_rows(RevenueByRoomType, data)

        return await self.cache.get_or_load(_key("by-room-type", from_date, to_date), load, ttl=REPORT_TTL)

    async def transactions(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None,
    ) -> List[FinancialTransaction]:
        """Payments and refunds as one ledger, latest first."""
        async def load():
            data = await self.gateway.select(
                "financial_transactions", filters=_range("transaction_date", from_date, to_date),
                order="transaction_date", ascending=False,
            )
            return parse_rows(FinancialTransaction, data)

        return await self.cache.get_or_load(_key("transactions", from_date, to_date), load, ttl=REPORT_TTL)

    async def payment_summary(self, today: Optional[date] = None) -> PaymentSummary:
        """
        Today's and month-to-date revenue, the total still owed, and today's
        takings per payment method. A day with no takings reads as zero.
        """
        today = today or date.today()
        first_of_month = today.replace(day=1)

        async def load():
            try:
                today_row = await self.gateway.select(
                    "daily_revenue_summary", filters=[eq("business_date", today)], single=True,
                )
                today_summary = parse_row(DailyRevenueSummary, today_row)
            except RecordNotFound:
                today_summary = DailyRevenueSummary(business_date=today)

            month_rows = await self.gateway.select(
                "daily_revenue_summary", columns="total_revenue",
                filters=_range("business_date", first_of_month, today),
            )
            balance_rows = await self.gateway.select("outstanding_balances", columns="balance_due")

            return PaymentSummary(
                today_revenue=today_summary.total_revenue,
                month_revenue=sum((Decimal(str(r["total_revenue"])) for r in month_rows), Decimal("0")),
                outstanding_balance=sum((Decimal(str(r["balance_due"])) for r in balance_rows), Decimal("0")),
                payment_method_breakdown=PaymentMethodBreakdown(
                    cash=today_summary.cash_total,
                    credit_card=today_summary.credit_card_total,
                    debit_card=today_summary.debit_card_total,
                    bank_transfer=today_summary.bank_transfer_total,
                    other=today_summary.other_total,
                ),
            )

        return await self.cache.get_or_load(_key("payment-summary", today), load, ttl=REPORT_TTL)

    async def tax_report(self, from_date: date, to_date: date) -> TaxReport:
        """Sales and tax on invoices issued in the range that are paid or part paid."""
        async def load():
            data = await self.gateway.select(
                "invoices",
                columns="subtotal,tax_amount,total_amount,issue_date,status",
                filters=_range("issue_date", from_date, to_date) + [
                    in_("status", [InvoiceStatus.PAID.value, InvoiceStatus.PARTIALLY_PAID.value]),
                ],
            )
            invoices = parse_rows(TaxReportInvoice, data)
            return TaxReport(
                from_date=from_date,
                to_date=to_date,
                total_sales=sum((i.subtotal for i in invoices), Decimal("0")),
                total_tax=sum((i.tax_amount for i in invoices), Decimal("0")),
                total_amount=sum((i.total_amount for i in invoices), Decimal("0")),
                invoice_count=len(invoices),
                invoices=invoices,
            )

        return await self.cache.get_or_load(_key("tax", from_date, to_date), load, ttl=REPORT_TTL)
