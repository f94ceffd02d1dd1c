"""
Data access layer.

One repository per aggregate, all sharing the ``AsyncBaseRepository`` CRUD
operations. ``build_sql_repos_from_session`` wires them to one session.
"""

from .base import AsyncBaseRepository, QueryBuilder
from .bundle import SqlRepoBundle, build_sql_repos_from_session

__all__ = [
    "AsyncBaseRepository",
    "QueryBuilder",
    "SqlRepoBundle",
    "build_sql_repos_from_session",
]
