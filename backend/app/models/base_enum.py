# backend/app/models/base_enum.py
"""
Enum column helper for SQLAlchemy.

SQLAlchemy's Enum type persists member NAMES by default ('MONDAY'), while
the wire format and raw SQL use member VALUES ('monday'). Columns built with
``create_safe_enum`` store values so both paths agree.

Usage:
    day_of_week = Column(
        create_safe_enum(DayOfWeek, "day_of_week_enum", native_enum=False),
        nullable=False,
    )
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = True,
    validate_strings: bool = True,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that stores enum values (not names).

    Args:
        enum_class: The (str, Enum) class to store
        name: Database type name (used by native enums)
        native_enum: Whether to use a native database enum type
        validate_strings: Reject strings that are not enum values

    Returns:
        SQLAlchemy Enum column type
    """
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        validate_strings=validate_strings,
        values_callable=_get_enum_values,
        length=max(len(member.value) for member in enum_class),
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    return [member.value for member in enum_class]
