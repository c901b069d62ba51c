"""Declarative base shared by every model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models use plain ``Column`` assignments with non-``Mapped`` annotations
    __allow_unmapped__ = True
