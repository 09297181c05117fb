"""
Pydantic schemas for the calendar backend.

Request fields are optional at the schema level; presence is checked by the
handlers so that a missing field yields the API's own 400 message.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class CreateCalendarRequest(BaseModel):
    calendarName: Optional[str] = None


class DeleteCalendarRequest(BaseModel):
    deleteCalendarName: Optional[str] = None


class EditCalendarRequest(BaseModel):
    calendarName: Optional[str] = None
    newCalendarName: Optional[str] = None


class EventPayload(BaseModel):
    title: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None


class CreateEventRequest(BaseModel):
    calendarName: Optional[str] = None
    event: Optional[EventPayload] = None


class DeleteEventRequest(BaseModel):
    calendarName: Optional[str] = None
    eventId: Optional[str] = None


class EditEventRequest(BaseModel):
    calendarName: Optional[str] = None
    eventId: Optional[str] = None
    eventTitle: Optional[str] = None
    eventDescription: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    token: str


class EventOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str
    date: str
    description: Optional[str] = None


class CalendarOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    events: list[EventOut]


class CreateCalendarResponse(BaseModel):
    message: str
    calendar: list[CalendarOut]


class CalendarsResponse(BaseModel):
    calendars: list[CalendarOut]


class CreateEventResponse(BaseModel):
    message: str
    event: EventOut


class HealthResponse(BaseModel):
    status: Literal["healthy"]
    service: str
