"""Declarative base shared by every league model."""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from leaguebets.db.metadata import metadata_obj

# BigInteger keys, except on SQLite where only INTEGER PRIMARY KEY autoincrements.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    metadata = metadata_obj
