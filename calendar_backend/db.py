"""
Database abstraction for user aggregates: Postgres (via SQLAlchemy) and an
in-memory test implementation.

A user aggregate is the user row together with every calendar and event it
owns. Clients always hand out and accept whole aggregates; there is no
field-level update path.
"""

from __future__ import annotations

import copy
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from calendar_backend.errors import StorageError


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class EventRecord:
    title: str
    date: str
    description: Optional[str] = None
    event_id: str = field(default_factory=new_id)

    def as_dict(self) -> dict:
        return {
            "_id": self.event_id,
            "title": self.title,
            "date": self.date,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventRecord":
        return cls(
            event_id=data["_id"],
            title=data["title"],
            date=data["date"],
            description=data.get("description"),
        )


@dataclass
class CalendarRecord:
    name: str
    events: list[EventRecord] = field(default_factory=list)
    calendar_id: str = field(default_factory=new_id)

    def as_dict(self) -> dict:
        return {
            "_id": self.calendar_id,
            "name": self.name,
            "events": [event.as_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CalendarRecord":
        return cls(
            calendar_id=data["_id"],
            name=data["name"],
            events=[EventRecord.from_dict(e) for e in data.get("events", [])],
        )


@dataclass
class UserRecord:
    username: str
    email: str
    password_hash: str
    calendars: list[CalendarRecord] = field(default_factory=list)
    user_id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def calendars_as_json(self) -> list[dict]:
        return [calendar.as_dict() for calendar in self.calendars]


class DbClient(Protocol):
    """Interface for user aggregate storage."""

    def create_user(
        self, username: str, email: str, password_hash: str
    ) -> UserRecord:
        ...

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    def save_user(self, user: UserRecord) -> None:
        ...


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}

    def create_user(
        self, username: str, email: str, password_hash: str
    ) -> UserRecord:
        for existing in self.users.values():
            if existing.username == username:
                raise StorageError(f"Duplicate key: username {username!r}")
            if existing.email == email:
                raise StorageError(f"Duplicate key: email {email!r}")
        record = UserRecord(
            username=username, email=email, password_hash=password_hash
        )
        self.users[record.user_id] = copy.deepcopy(record)
        return record

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        # Copies so that callers must save_user() for changes to stick.
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.username == username:
                return copy.deepcopy(user)
        return None

    def save_user(self, user: UserRecord) -> None:
        if user.user_id not in self.users:
            raise StorageError(f"User {user.user_id} no longer exists")
        user.updated_at = time.time()
        self.users[user.user_id] = copy.deepcopy(user)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            user_id=row.user_id,
            username=row.username,
            email=row.email,
            password_hash=row.password_hash,
            calendars=[CalendarRecord.from_dict(c) for c in row.calendars or []],
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def create_user(
        self, username: str, email: str, password_hash: str
    ) -> UserRecord:
        now = time.time()
        try:
            with self.Session() as session:
                row = UserRow(
                    user_id=new_id(),
                    username=username,
                    email=email,
                    password_hash=password_hash,
                    calendars=[],
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_user_record(row)
        except IntegrityError as exc:
            raise StorageError(f"Duplicate key: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        try:
            with self.Session() as session:
                row = session.get(UserRow, user_id)
                if not row:
                    return None
                return self._to_user_record(row)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        try:
            with self.Session() as session:
                stmt = select(UserRow).where(UserRow.username == username).limit(1)
                row = session.execute(stmt).scalar_one_or_none()
                if not row:
                    return None
                return self._to_user_record(row)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def save_user(self, user: UserRecord) -> None:
        try:
            with self.Session() as session:
                row = session.get(UserRow, user.user_id)
                if not row:
                    raise StorageError(f"User {user.user_id} no longer exists")
                row.username = user.username
                row.email = user.email
                row.password_hash = user.password_hash
                # Whole calendar list is rewritten on every save.
                row.calendars = user.calendars_as_json()
                row.updated_at = time.time()
                session.commit()
                user.updated_at = row.updated_at
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    user_id = Column(String, primary_key=True)
    username = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    calendars = Column(JSON, nullable=False, default=list)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
