#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Issue Tracker API.

- Integer autoincrement primary key
- created_at timestamp (DB default), updated_at via TimestampMixin
- save() and delete() that use DBStorage
- to_dict() that formats timestamps and never includes password_hash

Notes:
- Timestamps set from Python are naive UTC (see utcnow()); DB defaults use
  CURRENT_TIMESTAMP, which is UTC on both SQLite and a UTC PostgreSQL server.
"""

from __future__ import annotations

from datetime import datetime, timezone

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py
import models

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Declarative base for all models
Base = declarative_base()

HIDDEN_FIELDS = {"_sa_instance_state", "password_hash", "token_hash"}


def utcnow() -> datetime:
    """Naive UTC now, comparable with values read back from the DB."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, save/delete, to_dict.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.to_dict()}"

    def save(self):
        """Add the instance to the session and commit."""
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """
        Hard delete the current instance using DBStorage.
        Not committed here; caller decides when to commit.
        """
        models.storage.delete(self)

    def to_dict(self) -> dict:
        d = {k: v for k, v in self.__dict__.items() if k not in HIDDEN_FIELDS}
        for key, value in d.items():
            if isinstance(value, datetime):
                d[key] = value.strftime(TIME_FMT)
        d["__class__"] = self.__class__.__name__
        return d


class TimestampMixin:
    """Adds updated_at, bumped on every UPDATE."""

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
