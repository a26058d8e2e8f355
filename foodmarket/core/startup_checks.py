from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from foodmarket.core.config import DATABASE_URL, DEV_JWT_SECRET_KEY, ENV_NORMALIZED, JWT_SECRET_KEY

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"
CONFIG_PREFIX = "[CONFIG]"


def validate_database_environment(env: str = ENV_NORMALIZED, database_url: str = DATABASE_URL) -> None:
    if env in {"prod", "production"} and database_url.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def validate_auth_configuration(env: str = ENV_NORMALIZED, secret: str = JWT_SECRET_KEY) -> None:
    if secret and secret != DEV_JWT_SECRET_KEY:
        return
    if env in {"prod", "production"}:
        logger.critical("%s JWT_SECRET_KEY is required in production", CONFIG_PREFIX)
        raise RuntimeError("JWT_SECRET_KEY environment variable is required")
    logger.warning("%s JWT_SECRET_KEY not set; using insecure development secret", CONFIG_PREFIX)


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path, env: str = ENV_NORMALIZED) -> None:
    if env in {"test", "dev", "development", "local"}:
        logger.info("%s skipped migration check env=%s", MIGRATIONS_PREFIX, env)
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    alembic_cfg = Config(str(alembic_config_path))
    script_directory = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script_directory.get_heads())

    with engine.connect() as connection:
        inspector = inspect(connection)
        if "alembic_version" not in inspector.get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")

        current_rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()

    current_heads = {row[0] for row in current_rows if row and row[0]}
    if current_heads != expected_heads:
        logger.critical(
            "%s pending migration detected current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
            sorted(expected_heads),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s migration state verified", MIGRATIONS_PREFIX)
