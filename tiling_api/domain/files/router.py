"""File router - download booking attachments"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin, get_current_user
from ...database import get_db
from ...errors import NotFoundError
from ...models import User
from ...utils.file_storage import R2_LOCATOR_PREFIX, FileStore, get_file_store
from ..bookings.repository import BookingRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get("/{file_id}")
async def download_file(
    file_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
):
    """Stream a local attachment, or redirect to a short-lived R2 URL"""
    booking_file = BookingRepository.get_file(db, file_id)
    if not booking_file:
        raise NotFoundError.for_entity("File", "id", file_id)
    ensure_owner_or_admin(current_user, booking_file.booking.user_id)

    if booking_file.locator.startswith(R2_LOCATOR_PREFIX):
        url = file_store.url_for(booking_file.id, booking_file.locator)
        if url.startswith("http"):
            return RedirectResponse(url)

    content = file_store.fetch(booking_file.locator)
    return Response(
        content=content,
        media_type=booking_file.mime_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(booking_file.original_name)}"},
    )
