"""
statemiles/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base class (SQLAlchemy 2.0 style) shared by every model.
Models inherit from it to be registered in `Base.metadata`, which
Alembic and `create_all()` read.

Convention:
----------
Table names default to the lowercase class name. Models that need a
plural or snake_case name override `__tablename__` themselves
(e.g. MileageTrip → "mileage_trips").
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models in the application.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
