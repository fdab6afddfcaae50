"""Declarative base and the column mixins shared by the order models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from foodie.core.exceptions import VersionConflict

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class VersionMixin:
    """Optimistic concurrency for orders.

    Every accepted mutation bumps ``version``. A client that read version N
    may pass it back as ``expected_version``; if anyone else wrote in the
    meantime the write is refused with ``VersionConflict`` instead of
    silently overwriting their change.
    """

    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)

    def check_version(self, expected: Optional[int]) -> None:
        if expected is not None and expected != self.version:
            raise VersionConflict(expected=expected, current=self.version)

    def increment_version(self) -> None:
        self.version = (self.version or 1) + 1
