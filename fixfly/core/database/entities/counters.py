"""
Named sequence counters used for human-readable ids (ticket ids, AMC
subscription ids, vendor ids).
"""

from __future__ import annotations

from sqlmodel import Field

from ..base import Base


class Counter(Base, table=True):
    """Entity holding the last issued value of a named sequence.

    Table: counters
    """

    __tablename__ = "counters"

    name: str = Field(primary_key=True, max_length=64)
    seq: int = Field(default=0)

    def __repr__(self) -> str:
        return f"Counter(name={self.name}, seq={self.seq})"
