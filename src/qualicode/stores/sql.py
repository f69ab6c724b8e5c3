"""SQLAlchemy backend.

Tables are ``texts``, ``codes`` and ``coded_segments``. Any SQLAlchemy URL
works; tests use in-memory SQLite.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .. import models
from ..errors import NotFound, StoreUnavailable, ValidationError
from ..log import get_logger
from .base import StoreBackend, check_code, check_text
from .memory import utcnow

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class TextSQL(Base):
    __tablename__ = "texts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class CodeSQL(Base):
    __tablename__ = "codes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str] = mapped_column(Text, default="")
    color: Mapped[str] = mapped_column(String(7), default="#3498db")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class CodedSegmentSQL(Base):
    __tablename__ = "coded_segments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text_id: Mapped[int] = mapped_column(ForeignKey("texts.id"), index=True)
    code_id: Mapped[int] = mapped_column(ForeignKey("codes.id"))
    selected_text: Mapped[str] = mapped_column(Text)
    start_pos: Mapped[int] = mapped_column(Integer)
    end_pos: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _text(row: TextSQL) -> models.Text:
    return models.Text(
        id=row.id, title=row.title, content=row.content, created_at=_aware(row.created_at)
    )


def _code(row: CodeSQL) -> models.Code:
    return models.Code(
        id=row.id,
        name=row.name,
        description=row.description,
        color=row.color,
        created_at=_aware(row.created_at),
    )


def _span(row: CodedSegmentSQL) -> models.Span:
    return models.Span(
        id=row.id,
        text_id=row.text_id,
        code_id=row.code_id,
        selected_text=row.selected_text,
        start=row.start_pos,
        end=row.end_pos,
        created_at=_aware(row.created_at),
    )


class SqlBackend(StoreBackend):
    """Stores backed by a relational database through SQLAlchemy.

    Tables are created on construction if missing. Connection failures
    surface as :class:`StoreUnavailable`; they are never retried here.
    """

    def __init__(
        self,
        url: str = "sqlite:///qualicode.db",
        clock: Callable[[], datetime] = utcnow,
        echo: bool = False,
    ) -> None:
        self.url = url
        self._clock = clock
        try:
            if url in ("sqlite://", "sqlite:///:memory:"):
                # Keep a single connection so every session sees the same database
                self._engine = create_engine(
                    url,
                    echo=echo,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(url, echo=echo)
            Base.metadata.create_all(self._engine)
        except (SQLAlchemyError, ImportError) as exc:
            # ImportError: the URL names a DB driver that is not installed
            logger.warning("could not initialize schema at %s: %s", url, exc)
            raise StoreUnavailable(f"database at {url} is unavailable: {exc}") from exc
        self._sessionmaker = sessionmaker(bind=self._engine, expire_on_commit=False)

    @classmethod
    def name(cls) -> str:
        return "sql"

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def _session(self, conflict: str = "write violates a constraint") -> Iterator[Session]:
        """One transaction per store operation, committed on success.

        Constraint violations become :class:`ValidationError` with the
        ``conflict`` message; any other database error becomes
        :class:`StoreUnavailable`.
        """
        try:
            with self._sessionmaker.begin() as session:
                yield session
        except IntegrityError as exc:
            raise ValidationError(f"{conflict}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            logger.warning("store operation failed: %s", exc)
            raise StoreUnavailable(f"database at {self.url} is unavailable: {exc}") from exc

    # -- texts -------------------------------------------------------------

    def create_text(self, title: str, content: str) -> int:
        check_text(title, content)
        with self._session() as session:
            row = TextSQL(title=title, content=content, created_at=self._clock())
            session.add(row)
            session.flush()
            text_id = row.id
        logger.debug("stored text %d (%d chars)", text_id, len(content))
        return text_id

    def get_text(self, text_id: int) -> models.Text:
        with self._session() as session:
            row = session.get(TextSQL, text_id)
            if row is None:
                raise NotFound(f"text {text_id} does not exist")
            return _text(row)

    # -- codes -------------------------------------------------------------

    def create_code(self, name: str, description: str, color: str) -> models.Code:
        check_code(name, color)
        with self._session(conflict=f"code {name!r} already exists") as session:
            row = CodeSQL(
                name=name, description=description, color=color, created_at=self._clock()
            )
            session.add(row)
            session.flush()
            code = _code(row)
        logger.debug("stored code %d %r", code.id, name)
        return code

    def get_code(self, code_id: int) -> models.Code:
        with self._session() as session:
            row = session.get(CodeSQL, code_id)
            if row is None:
                raise NotFound(f"code {code_id} does not exist")
            return _code(row)

    def list_codes(self) -> list[models.Code]:
        with self._session() as session:
            rows = session.scalars(select(CodeSQL).order_by(CodeSQL.id))
            return [_code(r) for r in rows]

    # -- segments ----------------------------------------------------------

    def create_segment(
        self, text_id: int, code_id: int, selected_text: str, start: int, end: int
    ) -> models.Span:
        with self._session() as session:
            row = CodedSegmentSQL(
                text_id=text_id,
                code_id=code_id,
                selected_text=selected_text,
                start_pos=start,
                end_pos=end,
                created_at=self._clock(),
            )
            session.add(row)
            session.flush()
            span = _span(row)
        logger.debug("stored segment %d on text %d [%d, %d)", span.id, text_id, start, end)
        return span

    def list_segments(self) -> list[models.Span]:
        with self._session() as session:
            rows = session.scalars(select(CodedSegmentSQL).order_by(CodedSegmentSQL.id))
            return [_span(r) for r in rows]

    def list_segments_by_text(self, text_id: int) -> list[models.Span]:
        with self._session() as session:
            rows = session.scalars(
                select(CodedSegmentSQL)
                .where(CodedSegmentSQL.text_id == text_id)
                .order_by(CodedSegmentSQL.id)
            )
            return [_span(r) for r in rows]
