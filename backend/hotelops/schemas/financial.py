"""
Financial Report Schemas
Rows of the reporting views and the summaries derived from them.
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class DailyRevenueSummary(BaseModel):
    business_date: date
    cash_total: Decimal = Decimal("0")
    credit_card_total: Decimal = Decimal("0")
    debit_card_total: Decimal = Decimal("0")
    bank_transfer_total: Decimal = Decimal("0")
    other_total: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    transaction_count: int = 0
    reservation_count: int = 0


class OutstandingBalance(BaseModel):
    invoice_id: str
    reservation_id: Optional[str] = None
    invoice_number: str
    guest_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    total_amount: Decimal
    paid_amount: Decimal = Decimal("0")
    balance_due: Decimal
    due_date: Optional[date] = None
    payment_urgency: Optional[str] = None
    invoice_status: Optional[str] = None
    check_out_date: Optional[date] = None
    invoice_date: Optional[date] = None


class RevenueByRoomType(BaseModel):
    room_type_id: str
    room_type_name: str
    month: date
    reservation_count: int = 0
    total_revenue: Decimal = Decimal("0")
    average_revenue: Decimal = Decimal("0")
    cash_revenue: Decimal = Decimal("0")
    card_revenue: Decimal = Decimal("0")


class FinancialTransaction(BaseModel):
    transaction_type: str
    id: str
    invoice_id: Optional[str] = None
    reservation_id: Optional[str] = None
    amount: Decimal
    payment_method: Optional[str] = None
    transaction_date: datetime
    transaction_ref: Optional[str] = None
    status: Optional[str] = None
    handled_by: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentMethodBreakdown(BaseModel):
    cash: Decimal = Decimal("0")
    credit_card: Decimal = Decimal("0")
    debit_card: Decimal = Decimal("0")
    bank_transfer: Decimal = Decimal("0")
    other: Decimal = Decimal("0")


class PaymentSummary(BaseModel):
    today_revenue: Decimal = Decimal("0")
    month_revenue: Decimal = Decimal("0")
    outstanding_balance: Decimal = Decimal("0")
    payment_method_breakdown: PaymentMethodBreakdown = PaymentMethodBreakdown()


class TaxReportInvoice(BaseModel):
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    issue_date: date
    status: str


class TaxReport(BaseModel):
    from_date: date
    to_date: date
    total_sales: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    invoice_count: int = 0
    invoices: List[TaxReportInvoice] = []
