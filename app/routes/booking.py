"""
Booking routes
Public intake (POST /submit-booking), the admin listing (GET /bookings)
and the liveness ping (GET /ping).
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from app.database.booking_store import BookingStore
from app.models.booking import ErrorResponse, SubmitBookingResponse
from app.services.notifier import Notifier
from app.services.submission_parser import build_record, parse_submission
from app.utils.auth import require_admin
from app.utils.errors import StorageError, StoreNotReadyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])


def get_store(request: Request) -> BookingStore:
    """The app's store, refusing requests that arrive before it is connected"""
    store: BookingStore = request.app.state.store
    if not store.is_ready:
        raise StoreNotReadyError("Service is starting, please retry shortly")
    return store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


@router.post(
    "/submit-booking",
    response_model=SubmitBookingResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def submit_booking(
    request: Request,
    store: BookingStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Store a booking request and email it to the admin (and the client)"""
    submission, attachment = await parse_submission(request, request.app.state.settings)
    record = build_record(submission, attachment)

    try:
        booking_id = await store.put(record)
    except StorageError:
        logger.exception("❌ Failed to store booking")
        raise StorageError("Failed to save booking.")
    logger.info("✅ Booking %s stored", booking_id)

    # Email is best-effort once the booking is persisted
    try:
        result = await notifier.notify(record, attachment)
        if result.client_error:
            logger.warning("⚠️ Booking %s saved, client confirmation not sent", booking_id)
    except Exception:
        logger.exception("❌ Booking %s saved but notification failed", booking_id)

    return SubmitBookingResponse(message="Booking received", id=booking_id)


@router.get(
    "/bookings",
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_bookings(store: BookingStore = Depends(get_store)) -> List[Dict[str, Any]]:
    """All stored bookings, verbatim (admin only)"""
    try:
        return await store.list_all()
    except StorageError:
        logger.exception("❌ Failed to read bookings")
        raise StorageError("Failed to read bookings.")


@router.get("/ping", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
async def ping():
    """Liveness check"""
    return "pong"
