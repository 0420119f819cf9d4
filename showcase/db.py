"""
Entry store abstraction: SQLAlchemy-backed storage and an in-memory test implementation.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    case,
    create_engine,
    func,
    select,
    update,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from showcase.models import (
    MUTABLE_FIELDS,
    EntryDraft,
    PortfolioEntry,
    image_from_columns,
    image_to_columns,
)
from showcase.query import (
    EntryQuery,
    build_count_select,
    build_page_select,
    matches,
    page_slice,
    sort_entries,
)


class PortfolioDb(Protocol):
    """Interface for entry persistence."""

    def create_entry(self, draft: EntryDraft) -> PortfolioEntry:
        ...

    def insert_many(self, drafts: Iterable[EntryDraft]) -> int:
        ...

    def get_entry(self, entry_id: str) -> Optional[PortfolioEntry]:
        ...

    def update_entry(
        self, entry_id: str, changes: dict
    ) -> Optional[PortfolioEntry]:
        ...

    def delete_entry(self, entry_id: str) -> bool:
        ...

    def increment_views(self, entry_id: str) -> Optional[PortfolioEntry]:
        ...

    def adjust_likes(self, entry_id: str, delta: int) -> Optional[int]:
        ...

    def find_entries(self, query: EntryQuery) -> list[PortfolioEntry]:
        ...

    def count_matching(self, query: EntryQuery) -> int:
        ...

    def count_entries(self, featured: Optional[bool] = None) -> int:
        ...

    def category_counts(self) -> list[tuple[str, int]]:
        ...

    def tag_counts(self, limit: int = 10) -> list[tuple[str, int]]:
        ...

    def top_viewed(self, limit: int = 5) -> list[tuple[str, str, int]]:
        ...


def new_entry_id() -> str:
    return uuid.uuid4().hex


def _check_changes(changes: dict) -> None:
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")


def _ranked(counts: Iterable[tuple[str, int]]) -> list[tuple[str, int]]:
    return sorted(counts, key=lambda item: (-item[1], item[0]))


class InMemoryPortfolioDb:
    """Simple in-memory entry store for development and tests."""

    def __init__(self):
        self.entries: Dict[str, PortfolioEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _copy(entry: PortfolioEntry) -> PortfolioEntry:
        return replace(entry, tags=list(entry.tags))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.entries.clear()

    def create_entry(self, draft: EntryDraft) -> PortfolioEntry:
        now = time.time()
        entry = PortfolioEntry(
            id=new_entry_id(),
            title=draft.title,
            description=draft.description,
            category=draft.category,
            tags=list(draft.tags),
            url=draft.url,
            featured=draft.featured,
            image=draft.image,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self.entries[entry.id] = entry
        return self._copy(entry)

    def insert_many(self, drafts: Iterable[EntryDraft]) -> int:
        return len([self.create_entry(draft) for draft in drafts])

    def get_entry(self, entry_id: str) -> Optional[PortfolioEntry]:
        with self._lock:
            entry = self.entries.get(entry_id)
            return self._copy(entry) if entry else None

    def update_entry(
        self, entry_id: str, changes: dict
    ) -> Optional[PortfolioEntry]:
        _check_changes(changes)
        with self._lock:
            entry = self.entries.get(entry_id)
            if not entry:
                return None
            for key, value in changes.items():
                setattr(entry, key, list(value) if key == "tags" else value)
            entry.updated_at = time.time()
            return self._copy(entry)

    def delete_entry(self, entry_id: str) -> bool:
        with self._lock:
            return self.entries.pop(entry_id, None) is not None

    def increment_views(self, entry_id: str) -> Optional[PortfolioEntry]:
        with self._lock:
            entry = self.entries.get(entry_id)
            if not entry:
                return None
            entry.views += 1
            entry.updated_at = time.time()
            return self._copy(entry)

    def adjust_likes(self, entry_id: str, delta: int) -> Optional[int]:
        with self._lock:
            entry = self.entries.get(entry_id)
            if not entry:
                return None
            entry.likes = max(0, entry.likes + delta)
            entry.updated_at = time.time()
            return entry.likes

    def _snapshot(self) -> list[PortfolioEntry]:
        with self._lock:
            return list(self.entries.values())

    def _matching(self, query: EntryQuery) -> list[PortfolioEntry]:
        return [e for e in self._snapshot() if matches(e, query)]

    def find_entries(self, query: EntryQuery) -> list[PortfolioEntry]:
        ordered = sort_entries(self._matching(query), query.sort)
        return [self._copy(e) for e in page_slice(ordered, query)]

    def count_matching(self, query: EntryQuery) -> int:
        return len(self._matching(query))

    def count_entries(self, featured: Optional[bool] = None) -> int:
        entries = self._snapshot()
        if featured is None:
            return len(entries)
        return sum(1 for e in entries if e.featured == featured)

    def category_counts(self) -> list[tuple[str, int]]:
        return _ranked(Counter(e.category for e in self._snapshot()).items())

    def tag_counts(self, limit: int = 10) -> list[tuple[str, int]]:
        counts = Counter(tag for e in self._snapshot() for tag in e.tags)
        return _ranked(counts.items())[:limit]

    def top_viewed(self, limit: int = 5) -> list[tuple[str, str, int]]:
        ordered = sorted(self._snapshot(), key=lambda e: (-e.views, e.id))
        return [(e.id, e.title, e.views) for e in ordered[:limit]]


class SqlPortfolioDb:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlPortfolioDb")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def _to_entry(self, row: "EntryRow") -> PortfolioEntry:
        return PortfolioEntry(
            id=row.id,
            title=row.title,
            description=row.description,
            category=row.category,
            tags=[t.tag for t in row.tags],
            url=row.url,
            featured=row.featured,
            image=image_from_columns(row.image_path, row.image_id, row.image_base64),
            views=row.views,
            likes=row.likes,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _tag_rows(tags: Iterable[str]) -> list["TagRow"]:
        return [TagRow(position=i, tag=tag) for i, tag in enumerate(tags)]

    def _new_row(self, draft: EntryDraft, now: float) -> "EntryRow":
        return EntryRow(
            id=new_entry_id(),
            title=draft.title,
            description=draft.description,
            category=draft.category,
            url=draft.url,
            featured=draft.featured,
            views=0,
            likes=0,
            created_at=now,
            updated_at=now,
            tags=self._tag_rows(draft.tags),
            **image_to_columns(draft.image),
        )

    def create_entry(self, draft: EntryDraft) -> PortfolioEntry:
        with self.Session() as session:
            row = self._new_row(draft, time.time())
            session.add(row)
            session.commit()
            return self._to_entry(row)

    def insert_many(self, drafts: Iterable[EntryDraft]) -> int:
        now = time.time()
        with self.Session() as session:
            rows = [self._new_row(draft, now) for draft in drafts]
            session.add_all(rows)
            session.commit()
            return len(rows)

    def get_entry(self, entry_id: str) -> Optional[PortfolioEntry]:
        with self.Session() as session:
            row = session.get(EntryRow, entry_id)
            return self._to_entry(row) if row else None

    def update_entry(
        self, entry_id: str, changes: dict
    ) -> Optional[PortfolioEntry]:
        _check_changes(changes)
        with self.Session() as session:
            row = session.get(EntryRow, entry_id)
            if not row:
                return None
            for key, value in changes.items():
                if key == "image":
                    for column, column_value in image_to_columns(value).items():
                        setattr(row, column, column_value)
                elif key == "tags":
                    row.tags = self._tag_rows(value)
                else:
                    setattr(row, key, value)
            row.updated_at = time.time()
            session.commit()
            return self._to_entry(row)

    def delete_entry(self, entry_id: str) -> bool:
        with self.Session() as session:
            row = session.get(EntryRow, entry_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def increment_views(self, entry_id: str) -> Optional[PortfolioEntry]:
        with self.Session() as session:
            result = session.execute(
                update(EntryRow)
                .where(EntryRow.id == entry_id)
                .values(views=EntryRow.views + 1, updated_at=time.time())
            )
            if result.rowcount == 0:
                session.rollback()
                return None
            row = session.get(EntryRow, entry_id, populate_existing=True)
            entry = self._to_entry(row)
            session.commit()
            return entry

    def adjust_likes(self, entry_id: str, delta: int) -> Optional[int]:
        adjusted = EntryRow.likes + delta
        with self.Session() as session:
            result = session.execute(
                update(EntryRow)
                .where(EntryRow.id == entry_id)
                .values(
                    likes=case((adjusted < 0, 0), else_=adjusted),
                    updated_at=time.time(),
                )
            )
            if result.rowcount == 0:
                session.rollback()
                return None
            likes = session.scalar(
                select(EntryRow.likes).where(EntryRow.id == entry_id)
            )
            session.commit()
            return likes

    def find_entries(self, query: EntryQuery) -> list[PortfolioEntry]:
        with self.Session() as session:
            rows = session.scalars(build_page_select(query, EntryRow, TagRow)).all()
            return [self._to_entry(row) for row in rows]

    def count_matching(self, query: EntryQuery) -> int:
        with self.Session() as session:
            return session.scalar(build_count_select(query, EntryRow, TagRow)) or 0

    def count_entries(self, featured: Optional[bool] = None) -> int:
        stmt = select(func.count()).select_from(EntryRow)
        if featured is not None:
            stmt = stmt.where(EntryRow.featured == featured)
        with self.Session() as session:
            return session.scalar(stmt) or 0

    def category_counts(self) -> list[tuple[str, int]]:
        count = func.count().label("count")
        stmt = (
            select(EntryRow.category, count)
            .group_by(EntryRow.category)
            .order_by(count.desc(), EntryRow.category.asc())
        )
        with self.Session() as session:
            return [(category, n) for category, n in session.execute(stmt)]

    def tag_counts(self, limit: int = 10) -> list[tuple[str, int]]:
        count = func.count().label("count")
        stmt = (
            select(TagRow.tag, count)
            .group_by(TagRow.tag)
            .order_by(count.desc(), TagRow.tag.asc())
            .limit(limit)
        )
        with self.Session() as session:
            return [(tag, n) for tag, n in session.execute(stmt)]

    def top_viewed(self, limit: int = 5) -> list[tuple[str, str, int]]:
        stmt = (
            select(EntryRow.id, EntryRow.title, EntryRow.views)
            .order_by(EntryRow.views.desc(), EntryRow.id.asc())
            .limit(limit)
        )
        with self.Session() as session:
            return [(i, title, views) for i, title, views in session.execute(stmt)]


Base = declarative_base()


class EntryRow(Base):
    __tablename__ = "portfolio_entries"

    id = Column(String(32), primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(32), nullable=False, index=True)
    url = Column(String, nullable=True)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    image_path = Column(String, nullable=False, default="")
    image_id = Column(String, nullable=True)
    image_base64 = Column(Text, nullable=False, default="")
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)

    tags = relationship(
        "TagRow",
        order_by="TagRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TagRow(Base):
    __tablename__ = "portfolio_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(
        String(32),
        ForeignKey("portfolio_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    tag = Column(String(50), nullable=False, index=True)
