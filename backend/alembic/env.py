"""Alembic env.py: supports both public and tenant schema migrations.

Usage:
  # Migrate public schema (enterprises, users)
  alembic upgrade head

  # Migrate one tenant schema
  alembic -x schema=tenant -x tenant_schema=tenant_XXXXX upgrade head

  # Migrate all tenant schemas
  python -m factucr.cli migrate-tenants
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool, text

from factucr.config import settings
from factucr.database import PublicBase, TenantBase
from factucr.models import *  # noqa: F401,F403  ensure all models are imported
from factucr.tenancy import validate_schema_name

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url_sync)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Pass `-x schema=tenant` on the CLI to migrate tenant tables.
x_args = context.get_x_argument(as_dictionary=True)
target_schema = x_args.get("schema", "public")

if target_schema == "tenant":
    target_metadata = TenantBase.metadata
else:
    target_metadata = PublicBase.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        include_schemas=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        # Each tenant schema tracks its own migration state in its own
        # alembic_version table.
        schema_name = x_args.get("tenant_schema")
        if schema_name:
            validate_schema_name(schema_name)
            connection.execute(text(f'SET search_path TO "{schema_name}", pg_catalog'))

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            version_table_schema=schema_name if schema_name else None,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
