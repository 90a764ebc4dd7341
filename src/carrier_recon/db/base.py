from enum import Enum
from typing import Type

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models with automatic table naming."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return cls.__name__.lower()


def enum_values(enum: Type[Enum]) -> list[str]:
    """Persist enum values rather than member names."""

    return [member.value for member in enum]
