"""HTTP controller layer for assignment proposals, recurrence, occupancy and day slots."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from booking_engine.controllers.dependencies import get_planning_service
from booking_engine.domain.models import (
    Booking,
    DaySlotBooking,
    NoAssignment,
    NoAssignmentReason,
    OccupancyBooking,
    PatternType,
    RecurrenceDefinition,
    Resource,
)
from booking_engine.services.planning_service import (
    PlanningValidationError,
    RecurrenceValidationError,
    ResourcePlanningService,
)
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["planning"])

HHMM_REGEX = r"^\d{2}:\d{2}$"


class SpotRequest(BaseModel):
    id: str = Field(min_length=1)
    has_charger: bool = False


class ExistingBookingRequest(BaseModel):
    """Existing booking; ``desk_id`` identifies the booked spot."""

    desk_id: str = Field(min_length=1)
    start_minute: int
    end_minute: int


class AssignmentProposalRequest(BaseModel):
    start_minute: int = Field(ge=0, le=24 * 60)
    attendance_minutes: int
    charging_minutes: int = 0
    spots: list[SpotRequest] = Field(default_factory=list)
    bookings: list[ExistingBookingRequest] = Field(default_factory=list)


class ProposedBookingResponse(BaseModel):
    desk_id: str
    start_minute: int
    end_minute: int
    has_charger: bool


class AssignmentProposalResponse(BaseModel):
    type: Literal["none", "single", "split"]
    reason: Optional[NoAssignmentReason] = None
    bookings: list[ProposedBookingResponse] = Field(default_factory=list)
    used_fallback_charger_full_window: bool = False


class RecurrenceRequest(BaseModel):
    start_date: date
    end_date: date
    pattern_type: PatternType
    interval: int = Field(default=1, ge=1)
    by_weekday: Optional[list[int]] = None
    by_monthday: Optional[int] = Field(default=None, ge=1, le=31)
    by_month: Optional[int] = Field(default=None, ge=1, le=12)
    cap: Optional[int] = Field(default=None, ge=1)

    @field_validator("by_weekday")
    @classmethod
    def validate_weekdays(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is None:
            return None
        for weekday in value:
            if not 1 <= weekday <= 7:
                raise ValueError("by_weekday values must be within 1..7 (Monday=1)")
        return value


class RecurrenceResponse(BaseModel):
    dates: list[str]
    truncated: bool


class TimeRangeRequest(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    date: Optional[str] = None


class OccupancyRequest(BaseModel):
    intervals: list[TimeRangeRequest] = Field(default_factory=list)
    day: Optional[date] = None
    window_start: Optional[str] = Field(default=None, pattern=HHMM_REGEX)
    window_end: Optional[str] = Field(default=None, pattern=HHMM_REGEX)


class IntervalResponse(BaseModel):
    start_min: float
    end_min: float


class SegmentResponse(BaseModel):
    p0: float = Field(ge=0.0, le=1.0)
    p1: float = Field(ge=0.0, le=1.0)


class OccupancyResponse(BaseModel):
    intervals: list[IntervalResponse]
    free_intervals: list[IntervalResponse]
    segments: list[SegmentResponse]
    occupied_minutes: float = Field(ge=0.0)
    window_minutes: float = Field(ge=0.0)
    occupied_ratio: float = Field(ge=0.0, le=1.0)


class DaySlotBookingRequest(BaseModel):
    id: Optional[str] = None
    resource_id: Optional[str] = None
    date: Optional[str] = None
    employee_id: Optional[str] = None
    user_email: Optional[str] = None
    booked_for: Optional[Literal["SELF", "GUEST"]] = None
    created_by_employee_id: Optional[str] = None
    guest_name: Optional[str] = None
    day_slot: Optional[Literal["AM", "PM", "FULL"]] = None
    slot: Optional[Literal["FULL_DAY", "MORNING", "AFTERNOON", "CUSTOM"]] = None


class NormalizeDaySlotsRequest(BaseModel):
    bookings: list[DaySlotBookingRequest] = Field(default_factory=list)
    per_entry: bool = False


class NormalizedDaySlotBookingResponse(DaySlotBookingRequest):
    day_slot: Literal["AM", "PM", "FULL"]
    source_booking_ids: list[str] = Field(default_factory=list)
    is_virtual_merged: bool = False


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/assignment_proposal",
    response_model=AssignmentProposalResponse,
    status_code=status.HTTP_200_OK,
)
async def assignment_proposal(
    payload: AssignmentProposalRequest,
    service: ResourcePlanningService = Depends(get_planning_service),
) -> AssignmentProposalResponse:
    """Propose spot bookings for an attendance window; persistence stays with the caller."""
    try:
        proposal = service.propose_assignment(
            start_minute=payload.start_minute,
            attendance_minutes=payload.attendance_minutes,
            charging_minutes=payload.charging_minutes,
            spots=[Resource(id=spot.id, has_charger=spot.has_charger) for spot in payload.spots],
            bookings=[
                Booking(
                    resource_id=booking.desk_id,
                    start_minute=booking.start_minute,
                    end_minute=booking.end_minute,
                )
                for booking in payload.bookings
            ],
        )
    except PlanningValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected assignment planning failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build assignment proposal",
        ) from exc

    if isinstance(proposal, NoAssignment):
        return AssignmentProposalResponse(type="none", reason=proposal.reason)
    return AssignmentProposalResponse(
        type=proposal.type,
        bookings=[
            ProposedBookingResponse(
                desk_id=item.resource_id,
                start_minute=item.start_minute,
                end_minute=item.end_minute,
                has_charger=item.has_charger,
            )
            for item in proposal.bookings
        ],
        used_fallback_charger_full_window=proposal.used_fallback_charger_full_window,
    )


@router.post(
    "/recurrence/expand",
    response_model=RecurrenceResponse,
    status_code=status.HTTP_200_OK,
)
async def expand_recurrence(
    payload: RecurrenceRequest,
    service: ResourcePlanningService = Depends(get_planning_service),
) -> RecurrenceResponse:
    definition = RecurrenceDefinition(
        start_date=payload.start_date.isoformat(),
        end_date=payload.end_date.isoformat(),
        pattern_type=payload.pattern_type,
        interval=payload.interval,
        by_weekday=frozenset(payload.by_weekday) if payload.by_weekday is not None else None,
        by_monthday=payload.by_monthday,
        by_month=payload.by_month,
    )
    try:
        expansion = service.expand_series(definition, cap=payload.cap)
    except RecurrenceValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return RecurrenceResponse(dates=expansion.dates, truncated=expansion.truncated)


@router.post(
    "/occupancy",
    response_model=OccupancyResponse,
    status_code=status.HTTP_200_OK,
)
async def occupancy(
    payload: OccupancyRequest,
    service: ResourcePlanningService = Depends(get_planning_service),
) -> OccupancyResponse:
    """Merged busy/free intervals and ring segments for a business window."""
    try:
        metrics = service.occupancy(
            [
                OccupancyBooking(start_time=item.start_time, end_time=item.end_time, date=item.date)
                for item in payload.intervals
            ],
            day=payload.day,
            window_start=payload.window_start,
            window_end=payload.window_end,
        )
    except PlanningValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return OccupancyResponse(
        intervals=[
            IntervalResponse(start_min=item.start_min, end_min=item.end_min)
            for item in metrics.intervals
        ],
        free_intervals=[
            IntervalResponse(start_min=item.start_min, end_min=item.end_min)
            for item in metrics.free_intervals
        ],
        segments=[SegmentResponse(p0=item.p0, p1=item.p1) for item in metrics.segments],
        occupied_minutes=metrics.occupied_minutes,
        window_minutes=metrics.window_minutes,
        occupied_ratio=metrics.occupied_ratio,
    )


@router.post(
    "/day_slots/normalize",
    response_model=list[NormalizedDaySlotBookingResponse],
    status_code=status.HTTP_200_OK,
)
async def normalize_day_slots(
    payload: NormalizeDaySlotsRequest,
    service: ResourcePlanningService = Depends(get_planning_service),
) -> list[NormalizedDaySlotBookingResponse]:
    normalized = service.normalize_day_slots(
        [DaySlotBooking(**booking.model_dump()) for booking in payload.bookings],
        per_entry=payload.per_entry,
    )
    return [
        NormalizedDaySlotBookingResponse(
            id=item.id,
            resource_id=item.resource_id,
            date=item.date,
            employee_id=item.employee_id,
            user_email=item.user_email,
            booked_for=item.booked_for,
            created_by_employee_id=item.created_by_employee_id,
            guest_name=item.guest_name,
            day_slot=item.day_slot,
            slot=item.slot,
            source_booking_ids=list(item.source_booking_ids),
            is_virtual_merged=item.is_virtual_merged,
        )
        for item in normalized
    ]
