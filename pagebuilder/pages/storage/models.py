"""SQLAlchemy ORM models for page builder storage.

Two tables back the storage ports: ``page_builder_items`` holds every
document-store item keyed by ``(pk, sk)``, and ``page_builder_search`` holds
the search projection with its filterable attributes lifted into columns.

Examples
--------
Use the base metadata to create the tables:

>>> from sqlalchemy import create_engine
>>> engine = create_engine("sqlite://")
>>> Base.metadata.create_all(engine)
"""

from __future__ import annotations

# SQLAlchemy evaluates annotations at runtime; keep stdlib types imported.
import datetime as dt  # noqa: TC003
import typing as typ

import sqlalchemy as sa
from sqlalchemy import orm


class Base(orm.DeclarativeBase):
    """Base class for page builder SQLAlchemy models.

    Notes
    -----
    Alembic and test scaffolding rely on ``Base.metadata`` when applying
    migrations or detecting schema drift.
    """


class PageItemRecord(Base):
    """SQLAlchemy model for one document-store item.

    Attributes
    ----------
    pk : str
        Partition key, e.g. ``T#root#L#en-US#PB#P#<pid>``.
    sk : str
        Sort key, e.g. ``REV#0001``, ``L`` or a published path.
    data : dict[str, typing.Any]
        Item attributes without the key fields.
    updated_at : datetime.datetime
        Timestamp of the last write.
    """

    __tablename__ = "page_builder_items"

    pk: orm.Mapped[str] = orm.mapped_column(sa.String(255), primary_key=True)
    sk: orm.Mapped[str] = orm.mapped_column(sa.String(255), primary_key=True)
    data: orm.Mapped[dict[str, typ.Any]] = orm.mapped_column(sa.JSON, default=dict)
    updated_at: orm.Mapped[dt.datetime] = orm.mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )


class SearchDocumentRecord(Base):
    """SQLAlchemy model for one page search document.

    Attributes
    ----------
    id : str
        Document id, ``L#<pid>`` or ``P#<pid>``.
    kind : str
        ``latest`` or ``published``.
    tenant : str
        Owning tenant.
    locale : str
        Content locale.
    pid : str
        Page identity.
    category : str | None
        Category slug.
    status : str
        Revision status.
    title_lc : str
        Lower-cased title used for text search and title sorting.
    created_by_id : str | None
        Identity id of the revision author.
    created_on : datetime.datetime | None
        Revision creation timestamp.
    saved_on : datetime.datetime | None
        Revision save timestamp.
    published_on : datetime.datetime | None
        Publication timestamp.
    tags : list[str]
        Page tags.
    body : dict[str, typing.Any]
        Full document body returned by searches.
    """

    __tablename__ = "page_builder_search"
    __table_args__ = (
        sa.Index("ix_page_builder_search_scope", "tenant", "locale", "kind"),
    )

    id: orm.Mapped[str] = orm.mapped_column(sa.String(255), primary_key=True)
    kind: orm.Mapped[str] = orm.mapped_column(sa.String(16))
    tenant: orm.Mapped[str] = orm.mapped_column(sa.String(100))
    locale: orm.Mapped[str] = orm.mapped_column(sa.String(32))
    pid: orm.Mapped[str] = orm.mapped_column(sa.String(64), index=True)
    category: orm.Mapped[str | None] = orm.mapped_column(
        sa.String(100),
        nullable=True,
    )
    status: orm.Mapped[str] = orm.mapped_column(sa.String(32))
    title_lc: orm.Mapped[str] = orm.mapped_column(sa.String(255))
    created_by_id: orm.Mapped[str | None] = orm.mapped_column(
        sa.String(255),
        nullable=True,
    )
    created_on: orm.Mapped[dt.datetime | None] = orm.mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )
    saved_on: orm.Mapped[dt.datetime | None] = orm.mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )
    published_on: orm.Mapped[dt.datetime | None] = orm.mapped_column(
        sa.DateTime(timezone=True),
        nullable=True,
    )
    tags: orm.Mapped[list[str]] = orm.mapped_column(sa.JSON, default=list)
    body: orm.Mapped[dict[str, typ.Any]] = orm.mapped_column(sa.JSON, default=dict)
