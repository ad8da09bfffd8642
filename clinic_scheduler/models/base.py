"""Shared metadata for all scheduling tables."""

from sqlalchemy import MetaData

metadata = MetaData()
