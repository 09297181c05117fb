"""
HTTP routes for the calendar backend API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from fastapi import APIRouter, Depends

from calendar_backend.auth import require_identity
from calendar_backend.calendars import CalendarService
from calendar_backend.config import get_settings
from calendar_backend.db import CalendarRecord, DbClient
from calendar_backend.dependencies import (
    get_calendar_service,
    get_db_client,
    get_token_service,
)
from calendar_backend.errors import ApiError, InternalError, StorageError, ValidationError
from calendar_backend.schemas import (
    CalendarOut,
    CalendarsResponse,
    CreateCalendarRequest,
    CreateCalendarResponse,
    CreateEventRequest,
    CreateEventResponse,
    DeleteCalendarRequest,
    DeleteEventRequest,
    EditCalendarRequest,
    EditEventRequest,
    EventOut,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    TokenResponse,
)
from calendar_backend.security import (
    MAX_PASSWORD_BYTES,
    TokenService,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials"


@contextmanager
def _server_errors(operation: str):
    """Turn anything that is not already an ApiError into a 500."""
    try:
        yield
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("Error in %s", operation)
        raise InternalError("Server error", details=str(exc)) from exc


def _calendars_out(calendars: list[CalendarRecord]) -> list[CalendarOut]:
    return [CalendarOut.model_validate(c.as_dict()) for c in calendars]


@router.post("/signup", response_model=MessageResponse, status_code=201)
def signup(payload: SignupRequest, db: DbClient = Depends(get_db_client)):
    if not payload.username or not payload.email or not payload.password:
        raise ValidationError("Missing required field.")
    if len(payload.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )
    with _server_errors("signup"):
        password_hash = hash_password(
            payload.password, rounds=get_settings().bcrypt_rounds
        )
        try:
            user = db.create_user(payload.username, payload.email, password_hash)
        except StorageError as exc:
            # Duplicate username/email is not told apart from other faults.
            logger.warning("Signup failed for %r: %s", payload.username, exc)
            raise InternalError("Could not create user", details=str(exc)) from exc
    logger.info("Created user %s (%s)", user.user_id, user.username)
    return MessageResponse(message="User created successfully")


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    tokens: TokenService = Depends(get_token_service),
):
    if not payload.username or not payload.password:
        raise ValidationError(INVALID_CREDENTIALS)
    with _server_errors("login"):
        user = db.get_user_by_username(payload.username)
        # Same answer for unknown user and wrong password.
        if not user or not verify_password(payload.password, user.password_hash):
            raise ValidationError(INVALID_CREDENTIALS)
        token = tokens.issue(user.user_id)
    logger.info("User %s logged in", user.user_id)
    return TokenResponse(token=token)


@router.post(
    "/createCalendar", response_model=CreateCalendarResponse, status_code=201
)
def create_calendar(
    payload: CreateCalendarRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("createCalendar"):
        calendars = service.create_calendar(user_id, payload.calendarName)
        return CreateCalendarResponse(
            message="Calendar created successfully",
            calendar=_calendars_out(calendars),
        )


@router.post("/deleteCalendar", response_model=MessageResponse)
def delete_calendar(
    payload: DeleteCalendarRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("deleteCalendar"):
        service.delete_calendar(user_id, payload.deleteCalendarName)
    return MessageResponse(message="Calendar deleted successfully")


@router.post("/editCalendar", response_model=MessageResponse)
def edit_calendar(
    payload: EditCalendarRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("editCalendar"):
        service.edit_calendar(user_id, payload.calendarName, payload.newCalendarName)
    return MessageResponse(message="Calendar updated successfully")


@router.get("/getCalendars", response_model=CalendarsResponse)
def get_calendars(
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("getCalendars"):
        calendars = service.list_calendars(user_id)
        return CalendarsResponse(calendars=_calendars_out(calendars))


@router.post("/createEvent", response_model=CreateEventResponse)
def create_event(
    payload: CreateEventRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    event_data = payload.event.model_dump(exclude_none=True) if payload.event else None
    with _server_errors("createEvent"):
        event = service.create_event(user_id, payload.calendarName, event_data)
        return CreateEventResponse(
            message="Event inserted successfully",
            event=EventOut.model_validate(event.as_dict()),
        )


@router.post("/deleteEvent", response_model=MessageResponse)
def delete_event(
    payload: DeleteEventRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("deleteEvent"):
        service.delete_event(user_id, payload.calendarName, payload.eventId)
    return MessageResponse(message="Event deleted successfully")


@router.post("/editEvent", response_model=MessageResponse)
def edit_event(
    payload: EditEventRequest,
    user_id: str = Depends(require_identity),
    service: CalendarService = Depends(get_calendar_service),
):
    with _server_errors("editEvent"):
        service.edit_event(
            user_id,
            payload.calendarName,
            payload.eventId,
            title=payload.eventTitle,
            description=payload.eventDescription,
        )
    return MessageResponse(message="Event updated successfully")
