"""Async engine, request sessions and the two declarative bases.

FactuCR keeps one PostgreSQL schema per enterprise:

  - PublicBase  → `public` schema: enterprises and their users
  - TenantBase  → copied into every `tenant_<id>` schema: customers,
                  products, invoices, invoice_sequences, activity_logs

A request gets exactly one session and one transaction. The session
commits when the handler returns and rolls back on any exception, so an
invoice, its lines, its number and its audit row are written together
or not at all. The session also flushes eagerly in the services, so
unique-key violations surface while the handler can still map them to a
domain error.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from factucr.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base classes ────────────────────────────────────────────

class PublicBase(DeclarativeBase):
    """Enterprise and user tables, shared by every tenant."""
    pass


class TenantBase(DeclarativeBase):
    """Invoicing tables, one copy per tenant schema."""
    pass


# ── Session dependencies ────────────────────────────────────

@asynccontextmanager
async def _request_transaction(search_path: str) -> AsyncIterator[AsyncSession]:
    """Session pinned to `search_path`; commit on success, roll back on error."""
    async with async_session() as session:
        await session.execute(text(f"SET search_path TO {search_path}"))
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            if search_path != "public":
                # Pooled connections must not keep a tenant's search_path
                await session.execute(text("SET search_path TO public"))


async def get_db() -> AsyncIterator[AsyncSession]:
    """Public-schema session (users, enterprises)."""
    async with _request_transaction("public") as session:
        yield session


async def get_tenant_db() -> AsyncIterator[AsyncSession]:
    """Session scoped to the tenant resolved by TenantMiddleware.

    Raises TenantContextError (403) before touching the database when the
    request carries no valid `tenant_schema` claim.
    """
    from factucr.tenancy import get_current_tenant_schema  # deferred to avoid circular

    schema = get_current_tenant_schema()
    async with _request_transaction(f'"{schema}", pg_catalog') as session:
        yield session
