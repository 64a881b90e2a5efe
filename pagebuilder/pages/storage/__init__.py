"""SQLAlchemy persistence adapters for the page builder.

This package implements the ``DocumentStore`` and ``SearchIndex`` ports on
top of SQLAlchemy async sessions, together with the ORM models and Alembic
helpers that describe the schema.

Examples
--------
Wire both adapters to one session factory:

>>> documents = SqlAlchemyDocumentStore(session_factory)
>>> search_index = SqlAlchemySearchIndex(session_factory)
"""

from .document_store import SqlAlchemyDocumentStore
from .migration_check import detect_schema_drift
from .models import Base, PageItemRecord, SearchDocumentRecord
from .search_index import SqlAlchemySearchIndex
from .wiring import build_page_builder_context

__all__ = (
    "Base",
    "PageItemRecord",
    "SearchDocumentRecord",
    "SqlAlchemyDocumentStore",
    "SqlAlchemySearchIndex",
    "build_page_builder_context",
    "detect_schema_drift",
)
