"""
Declarative base and shared columns for costing models.

Every table carries an integer primary key, a uuid usable as a stable
external reference, and created/updated timestamps. Cost columns on
Recipe and RecipeLineItem are written only by the cost rollup;
update_from_dict() never touches identity or timestamp columns.
"""

import uuid as uuid_lib
from datetime import datetime
from typing import Any, Dict, Iterable

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

from ..utils.datetime_utils import utc_now

Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base for ingredients, purchases, recipes and line items.

    Attributes:
        id: Primary key
        uuid: Random uuid4 string, assigned on insert
        created_at: Insert time (UTC)
        updated_at: Last modification time (UTC)
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid_lib.uuid4()), index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    _protected_fields = ("id", "uuid", "created_at", "updated_at")

    def to_dict(self, include: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Column values as a plain dictionary, timestamps in ISO format.

        Args:
            include: Relationship names to serialize as well, e.g.
                ("line_items",) for a recipe. Related rows are serialized
                without their own relationships.

        Returns:
            Dictionary keyed by column (and included relationship) name
        """
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            result[column.name] = value.isoformat() if isinstance(value, datetime) else value

        for name in include:
            related = getattr(self, name)
            if related is None:
                result[name] = None
            elif isinstance(related, list):
                result[name] = [item.to_dict() for item in related]
            else:
                result[name] = related.to_dict()

        return result

    def update_from_dict(self, data: Dict[str, Any]) -> None:
        """Set every column named in data, skipping identity and timestamp columns."""
        for column in self.__table__.columns:
            if column.name in data and column.name not in self._protected_fields:
                setattr(self, column.name, data[column.name])

        self.updated_at = utc_now()
