# backend/app/services/data_retrieval/__init__.py

"""
Data retrieval services package.

Store-backed implementations of the ports the domain services depend on.
"""

from .roster_data import RosterData

__all__ = [
    # SQLAlchemy-backed roster port
    "RosterData",
]
