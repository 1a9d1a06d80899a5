"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin, get_current_admin, get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import ApiResponse, PagedResponse, clamp_page
from ...utils.file_storage import FileStore, get_file_store
from .events import PostCommitDispatcher
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate, BookingUpdate
from .service import BookingService, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_post_commit_dispatcher(background_tasks: BackgroundTasks) -> PostCommitDispatcher:
    return PostCommitDispatcher(background_tasks)


def get_booking_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
    dispatcher=Depends(get_post_commit_dispatcher),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, file_store=file_store, dispatcher=dispatcher)


def booking_create_form(
    serviceId: str = Form(...),
    jobSize: str = Form(...),
    suburb: str = Form(...),
    postcode: str = Form(...),
    date: str = Form(...),
    timeSlot: str = Form(...),
    phone: str = Form(...),
    description: Optional[str] = Form(None),
) -> BookingCreate:
    """Validate multipart booking fields with the same rules as a JSON body"""
    try:
        return BookingCreate(
            serviceId=serviceId,
            jobSize=jobSize,
            suburb=suburb,
            postcode=postcode,
            date=date,
            timeSlot=timeSlot,
            phone=phone,
            description=description or None,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


def booking_update_form(
    serviceId: Optional[str] = Form(None),
    jobSize: Optional[str] = Form(None),
    suburb: Optional[str] = Form(None),
    postcode: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    timeSlot: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
) -> BookingUpdate:
    """Only fields that were actually sent end up set on the model"""
    sent = {
        name: value
        for name, value in {
            "serviceId": serviceId,
            "jobSize": jobSize,
            "suburb": suburb,
            "postcode": postcode,
            "date": date,
            "timeSlot": timeSlot,
            "phone": phone,
            "description": description,
        }.items()
        if value is not None
    }
    try:
        return BookingUpdate(**sent)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


async def read_uploads(files: Optional[list[UploadFile]]) -> list[UploadedFile]:
    uploads = []
    for f in files or []:
        if not f.filename:
            continue
        uploads.append(
            UploadedFile(
                filename=f.filename,
                content_type=f.content_type or "application/octet-stream",
                data=await f.read(),
            )
        )
    return uploads


# ============================================================================
# CUSTOMER OPERATIONS
# ============================================================================


@router.post("", status_code=201, response_model=ApiResponse[BookingResponse])
async def create_booking(
    data: BookingCreate = Depends(booking_create_form),
    files: Optional[list[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking with optional attachments"""
    uploads = await read_uploads(files)
    booking = service.create_booking(data, current_user.id, uploads)
    return ApiResponse(
        data=BookingResponse.from_booking(booking, service.file_store),
        message="Booking created successfully",
    )


@router.get("/my-bookings", response_model=ApiResponse[PagedResponse[BookingResponse]])
async def get_my_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(0),
    limit: int = Query(20),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings owned by the current user, newest first"""
    page, limit = clamp_page(page, limit)
    items, total = service.list_user_bookings(current_user.id, status, page, limit)
    return ApiResponse(
        data=PagedResponse.build(
            [BookingResponse.from_booking(b, service.file_store) for b in items], page, limit, total
        )
    )


@router.get("/id/{booking_id}", response_model=ApiResponse[BookingResponse])
async def get_booking_by_id(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id)
    ensure_owner_or_admin(current_user, booking.user_id)
    return ApiResponse(data=BookingResponse.from_booking(booking, service.file_store))


@router.get("/{booking_ref}", response_model=ApiResponse[BookingResponse])
async def get_booking_by_ref(
    booking_ref: str,
    service: BookingService = Depends(get_booking_service),
):
    """Public lookup by reference, e.g. TR-48213"""
    booking = service.get_booking_by_ref(booking_ref)
    return ApiResponse(data=BookingResponse.from_booking(booking, service.file_store))


@router.put("/{booking_id}", response_model=ApiResponse[BookingResponse])
async def update_booking(
    booking_id: int,
    data: BookingUpdate = Depends(booking_update_form),
    files: Optional[list[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Partial update; new files are added to the existing ones"""
    ensure_owner_or_admin(current_user, service.get_booking(booking_id).user_id)
    uploads = await read_uploads(files)
    booking = service.update_booking(booking_id, data, uploads)
    return ApiResponse(
        data=BookingResponse.from_booking(booking, service.file_store),
        message="Booking updated successfully",
    )


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================


@router.get("", response_model=ApiResponse[PagedResponse[BookingResponse]])
async def list_bookings(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(0),
    limit: int = Query(20),
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings, filtered by status and reference/name/email search"""
    page, limit = clamp_page(page, limit)
    items, total = service.list_bookings(status, search, page, limit)
    return ApiResponse(
        data=PagedResponse.build(
            [BookingResponse.from_booking(b, service.file_store) for b in items], page, limit, total
        )
    )


@router.patch("/{booking_id}/status", response_model=ApiResponse[BookingResponse])
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(booking_id, data.status)
    return ApiResponse(
        data=BookingResponse.from_booking(booking, service.file_store),
        message="Status updated successfully",
    )


@router.delete("/{booking_id}", response_model=ApiResponse[None])
async def delete_booking(
    booking_id: int,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    service.delete_booking(booking_id)
    return ApiResponse(message="Booking deleted successfully")
