"""
Database configuration and session management with SQLAlchemy.

Backs the self-hosted SQL ledger. Rows mirror the ledger's own record
layout, including epoch-second timestamps with 0 meaning "unset", so the
gateway can hand them to the record codec unchanged.

Design Decisions:
- AsyncSession for non-blocking operations
- Append-only table: rows are never deleted, ids never reused
- Status changes are compare-and-set updates, so concurrent writers on
  one record cannot both succeed
- Session-per-operation pattern
"""

import logging

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from licensechain.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class LicenseRow(Base):
    """
    One license record on the self-hosted ledger.

    Columns follow the ledger's positional record order.
    """
    __tablename__ = "license_records"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    business_name: Mapped[str] = mapped_column(String(256))
    registration_number: Mapped[str] = mapped_column(String(32), index=True)
    email: Mapped[str] = mapped_column(String(256))
    premise_address: Mapped[str] = mapped_column(Text)
    audit_description: Mapped[str] = mapped_column(Text)
    business_type: Mapped[str] = mapped_column(String(128))
    business_sector: Mapped[str] = mapped_column(String(128))
    document_reference: Mapped[str] = mapped_column(String(512), default="")

    # Immutable owner reference
    applicant_identity: Mapped[str] = mapped_column(String(128), index=True)

    # Epoch seconds, 0 = unset
    submitted_at: Mapped[int] = mapped_column(BigInteger, default=0)
    issued_at: Mapped[int] = mapped_column(BigInteger, default=0)
    expires_at: Mapped[int] = mapped_column(BigInteger, default=0)

    status: Mapped[str] = mapped_column(String(16), default="Pending")

    # Normalized number while the record holds it, NULL otherwise. Only
    # populated when the ledger enforces uniqueness; the unique index makes
    # the duplicate check part of the insert itself.
    live_registration_number: Mapped[str | None] = mapped_column(
        String(32), unique=True, nullable=True, default=None
    )


# Engine (initialized lazily)
_engine: AsyncEngine | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
        )
        logger.info(f"Database engine created for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Initialize database tables.

    Call this on application startup to ensure tables exist.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Close database connections on shutdown."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
    logger.info("Database connections closed")
