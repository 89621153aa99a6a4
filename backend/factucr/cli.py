"""Management CLI for tenant operations.

Usage:
    python -m factucr.cli create-tenant "Ferretería El Clavo S.A."   # Enterprise + schema
    python -m factucr.cli migrate-tenants                             # Alembic on every tenant schema
    python -m factucr.cli list-tenants                                # Show all tenant schemas
    python -m factucr.cli issue-token admin@example.com               # Dev access token
"""

import asyncio
import subprocess
import sys
import uuid

from sqlalchemy import create_engine, select

from factucr.auth.jwt import create_access_token
from factucr.auth.permissions import resolve_permissions
from factucr.config import settings
from factucr.database import async_session
from factucr.models.public.enterprise import Enterprise
from factucr.models.public.user import User
from factucr.tenancy import create_tenant_schema, schema_name_for


def get_tenant_schemas() -> list[str]:
    engine = create_engine(settings.database_url_sync)
    with engine.connect() as conn:
        result = conn.execute(select(Enterprise.tenant_schema))
        return [row[0] for row in result]


def migrate_tenants():
    """Run Alembic upgrade head against every tenant schema."""
    schemas = get_tenant_schemas()
    if not schemas:
        print("No tenant schemas found.")
        return

    for schema in schemas:
        print(f"  Migrating {schema}...")
        result = subprocess.run(
            [
                sys.executable, "-m", "alembic", "upgrade", "head",
                "-x", "schema=tenant",
                "-x", f"tenant_schema={schema}",
            ],
            capture_output=True, text=True,
        )
        if result.returncode != 0:
            print(f"  FAILED: {result.stderr}")
        else:
            print("  OK")


def list_tenants():
    schemas = get_tenant_schemas()
    for s in schemas:
        print(f"  {s}")
    print(f"\n{len(schemas)} tenant(s)")


async def create_tenant(name: str) -> str:
    enterprise_id = str(uuid.uuid4())
    schema = schema_name_for(enterprise_id)
    async with async_session() as db:
        db.add(Enterprise(id=enterprise_id, name=name, tenant_schema=schema))
        await db.commit()
        await create_tenant_schema(db, schema)
    return schema


async def issue_token(email: str) -> str:
    async with async_session() as db:
        user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
        if user is None or not user.is_active:
            raise SystemExit(f"No active user {email}")
        enterprise = await db.get(Enterprise, user.enterprise_id) if user.enterprise_id else None

    return create_access_token(
        user_id=user.id,
        role=user.role.value,
        permissions=resolve_permissions(user.role.value, user.custom_permissions),
        tenant_schema=enterprise.tenant_schema if enterprise else None,
    )


def main():
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    arg = sys.argv[2] if len(sys.argv) > 2 else ""
    if cmd == "migrate-tenants":
        migrate_tenants()
    elif cmd == "list-tenants":
        list_tenants()
    elif cmd == "create-tenant" and arg:
        print(asyncio.run(create_tenant(arg)))
    elif cmd == "issue-token" and arg:
        print(asyncio.run(issue_token(arg)))
    else:
        print("Usage: python -m factucr.cli [migrate-tenants|list-tenants|create-tenant NAME|issue-token EMAIL]")


if __name__ == "__main__":
    main()
