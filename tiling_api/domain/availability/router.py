"""Blocked date router - admin endpoints for the availability ledger"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...errors import InvalidInputError
from ...models import User
from ...shared.responses import ApiResponse
from ...shared.validators import parse_iso_date
from .schemas import BlockDatesRequest, BlockedDateResponse, DateAvailabilityResponse
from .service import AvailabilityLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings/block-dates", tags=["Blocked Dates"])


def get_availability_ledger(db: Session = Depends(get_db)) -> AvailabilityLedger:
    """Dependency injection for AvailabilityLedger"""
    return AvailabilityLedger(db)


def _parse_query_date(value: str, name: str) -> date:
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise InvalidInputError(
            f"Invalid {name}: {value}. Use ISO format (YYYY-MM-DD)", code="INVALID_DATE_FORMAT"
        ) from e


@router.post("", status_code=201, response_model=ApiResponse[list[BlockedDateResponse]])
async def block_dates(
    data: BlockDatesRequest,
    admin: User = Depends(get_current_admin),
    ledger: AvailabilityLedger = Depends(get_availability_ledger),
):
    """Block one or more future dates; dates already blocked are skipped"""
    created = ledger.block_dates(data.dates, data.reason)
    logger.info(f"✅ {admin.email} blocked {len(created)} date(s)")
    return ApiResponse(
        data=[BlockedDateResponse.from_entry(e) for e in created],
        message=f"{len(created)} date(s) blocked successfully",
    )


@router.get("", response_model=ApiResponse[list[BlockedDateResponse]])
async def list_blocked_dates(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    admin: User = Depends(get_current_admin),
    ledger: AvailabilityLedger = Depends(get_availability_ledger),
):
    """Blocked dates in [startDate, endDate] when both are given, otherwise all upcoming"""
    if startDate and endDate:
        entries = ledger.list_in_range(
            _parse_query_date(startDate, "startDate"), _parse_query_date(endDate, "endDate")
        )
    else:
        entries = ledger.list_upcoming()
    return ApiResponse(data=[BlockedDateResponse.from_entry(e) for e in entries])


@router.get("/check", response_model=ApiResponse[DateAvailabilityResponse])
async def check_date(
    date: str = Query(...),
    ledger: AvailabilityLedger = Depends(get_availability_ledger),
):
    """Public availability check used by the booking form"""
    day = _parse_query_date(date, "date")
    return ApiResponse(data=DateAvailabilityResponse(date=day, blocked=ledger.is_blocked(day)))


@router.delete("/{entry_id}", response_model=ApiResponse[None])
async def unblock_date(
    entry_id: int,
    admin: User = Depends(get_current_admin),
    ledger: AvailabilityLedger = Depends(get_availability_ledger),
):
    """Remove a blocked date regardless of who created it"""
    ledger.unblock_by_id(entry_id)
    return ApiResponse(message="Date unblocked successfully")
