"""
Financial Report API Endpoints
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from hotelops.dependencies import get_financial_report_service, require_permission
from hotelops.schemas.financial import (
    DailyRevenueSummary,
    FinancialTransaction,
    OutstandingBalance,
    PaymentSummary,
    RevenueByRoomType,
    TaxReport,
)
from hotelops.schemas.profile import Profile
from hotelops.services.financial_report_service import FinancialReportService

router = APIRouter()


@router.get("/daily-revenue", response_model=List[DailyRevenueSummary])
async def daily_revenue(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    return await service.daily_revenue(from_date, to_date)


@router.get("/outstanding-balances", response_model=List[OutstandingBalance])
async def outstanding_balances(
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    return await service.outstanding_balances()


@router.get("/revenue-by-room-type", response_model=List[RevenueByRoomType])
async def revenue_by_room_type(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    return await service.revenue_by_room_type(from_date, to_date)


@router.get("/transactions", response_model=List[FinancialTransaction])
async def transactions(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    """Payments and refunds as one ledger"""
    return await service.transactions(from_date, to_date)


@router.get("/payment-summary", response_model=PaymentSummary)
async def payment_summary(
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    """Today's and month-to-date revenue, total owed, and today's takings by method"""
    return await service.payment_summary()


@router.get("/tax", response_model=TaxReport)
async def tax_report(
    from_date: date = Query(...),
    to_date: date = Query(...),
    actor: Profile = Depends(require_permission("analytics.financial")),
    service: FinancialReportService = Depends(get_financial_report_service),
):
    """Sales and tax collected on paid and part-paid invoices issued in the range"""
    if to_date < from_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="to_date is before from_date")
    return await service.tax_report(from_date, to_date)
