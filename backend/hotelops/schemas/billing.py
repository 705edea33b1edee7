"""
Billing Schemas
Invoices with their line items, payments and refunds.
"""
from pydantic import BaseModel, Field
from typing import Optional, Any, List
from datetime import date, datetime
from decimal import Decimal
import enum


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    OVERDUE = "overdue"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"


# ============== Invoices ==============

class Invoice(BaseModel):
    id: str
    reservation_id: Optional[str] = None
    invoice_number: str
    issue_date: date
    due_date: Optional[date] = None
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InvoiceLineItem(BaseModel):
    id: str
    invoice_id: str
    description: str
    item_type: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal
    total_price: Decimal
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    posting_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class InvoiceGuest(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class InvoiceRoomType(BaseModel):
    id: str
    name: str


class InvoiceRoom(BaseModel):
    id: str
    room_number: str
    room_type: Optional[InvoiceRoomType] = None


class InvoiceReservation(BaseModel):
    id: str
    guest_id: str
    room_id: str
    check_in_date: date
    check_out_date: date
    guest: Optional[InvoiceGuest] = None
    room: Optional[InvoiceRoom] = None


class InvoiceCreate(BaseModel):
    """Manual invoice. The number and issue date are assigned on creation."""
    reservation_id: Optional[str] = None
    due_date: Optional[date] = None
    subtotal: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    total_amount: Decimal = Field(Decimal("0"), ge=0)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: Optional[str] = None


class InvoiceFromReservation(BaseModel):
    reservation_id: str
    tax_rate: Decimal = Field(Decimal("16.0"), ge=0, description="Percent")


class InvoiceUpdate(BaseModel):
    due_date: Optional[date] = None
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    status: Optional[InvoiceStatus] = None
    notes: Optional[str] = None


class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1)
    item_type: str = Field(..., min_length=1)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal
    tax_rate: Decimal = Field(Decimal("0"), ge=0, description="Percent")
    posting_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceFilters(BaseModel):
    status: Optional[str] = None  # an InvoiceStatus value or "all"
    invoice_number: Optional[str] = None
    guest_name: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    has_balance: Optional[bool] = None


class RoomChargeCalculation(BaseModel):
    num_nights: int
    base_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    final_amount: Decimal
    applied_rules: Optional[Any] = None


# ============== Payments ==============

class Payment(BaseModel):
    id: str
    invoice_id: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: Optional[datetime] = None
    transaction_ref: Optional[str] = None
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Refund(BaseModel):
    id: str
    payment_id: str
    amount: Decimal
    reason: str
    refund_method: PaymentMethod
    transaction_ref: Optional[str] = None
    status: RefundStatus = RefundStatus.PENDING
    notes: Optional[str] = None
    requested_by: Optional[str] = None
    approved_by: Optional[str] = None
    processed_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentInvoiceGuest(BaseModel):
    first_name: str
    last_name: str


class PaymentInvoiceReservation(BaseModel):
    id: str
    guest: Optional[PaymentInvoiceGuest] = None


class PaymentInvoice(BaseModel):
    id: str
    invoice_number: str
    total_amount: Decimal
    reservation: Optional[PaymentInvoiceReservation] = None


class PaymentWithRefunds(Payment):
    invoice: Optional[PaymentInvoice] = None
    refunds: List[Refund] = []


class InvoiceWithDetails(Invoice):
    reservation: Optional[InvoiceReservation] = None
    line_items: List[InvoiceLineItem] = []
    payments: List[Payment] = []
    total_paid: Decimal = Decimal("0")
    balance_due: Decimal = Decimal("0")


class PaymentCreate(BaseModel):
    invoice_id: str
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    transaction_ref: Optional[str] = None
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: Optional[str] = None


class SplitPaymentPart(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod
    transaction_ref: Optional[str] = None
    notes: Optional[str] = None


class SplitPaymentRequest(BaseModel):
    payments: List[SplitPaymentPart] = Field(..., min_length=1)


class PaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    transaction_ref: Optional[str] = None
    notes: Optional[str] = None


class PaymentFilters(BaseModel):
    payment_method: Optional[str] = None  # a PaymentMethod value or "all"
    status: Optional[str] = None  # a PaymentStatus value or "all"
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    processed_by: Optional[str] = None


class RefundRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1)
    refund_method: PaymentMethod
    notes: Optional[str] = None


class RefundProcess(BaseModel):
    transaction_ref: Optional[str] = None
