import os

from loguru import logger
from sqlalchemy import create_engine, event, select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session

from parkwell.config.settings_env import settings
from parkwell.domain.common import RoleName
from parkwell.domain.permissions import PERMISSIONS, ROLE_DESCRIPTIONS, ROLE_PERMISSIONS
from parkwell.infrastructure.persistence.models.models import (
    Base,
    Permission as ORMPermission,
    Role as ORMRole,
    RolePermission as ORMRolePermission,
    User as ORMUser,
)
from parkwell.infrastructure.security import hash_password

DATABASE_URL = settings.DATABASE_URL
ASYNC_DATABASE_URL = settings.ASYNC_DATABASE_URL

# Ensure we're using absolute paths for SQLite files
if DATABASE_URL.startswith("sqlite:///./"):
    db_path = os.path.abspath(DATABASE_URL[len("sqlite:///"):])
    DATABASE_URL = f"sqlite:///{db_path}"
    ASYNC_DATABASE_URL = f"sqlite+aiosqlite:///{db_path}"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def enable_sqlite_foreign_keys(sync_engine):
    """SQLite ignores ON DELETE clauses unless the pragma is set per connection."""
    if sync_engine.dialect.name == "sqlite":
        event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)


# Sync engine for initialization
engine = create_engine(DATABASE_URL, connect_args={
                       "check_same_thread": False} if "sqlite" in DATABASE_URL else {})
enable_sqlite_foreign_keys(engine)

# Async engine for application
async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False)
enable_sqlite_foreign_keys(async_engine.sync_engine)
AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def seed_reference_data(connection, admin_email=None, admin_password=None):
    """Insert roles, permissions and their grants; optionally a first admin.

    Safe to run repeatedly: existing rows are left untouched.
    """
    with Session(bind=connection) as session:
        permissions = {p.name: p for p in session.scalars(select(ORMPermission))}
        for name, description in PERMISSIONS.items():
            if name not in permissions:
                permissions[name] = ORMPermission(name=name, description=description)
                session.add(permissions[name])

        roles = {r.name: r for r in session.scalars(select(ORMRole))}
        for role_name, description in ROLE_DESCRIPTIONS.items():
            if role_name.value not in roles:
                roles[role_name.value] = ORMRole(name=role_name.value, description=description)
                session.add(roles[role_name.value])
        session.flush()

        granted = {(rp.role_id, rp.permission_id) for rp in session.scalars(select(ORMRolePermission))}
        for role_name, permission_names in ROLE_PERMISSIONS.items():
            role = roles[role_name.value]
            for permission_name in permission_names:
                permission = permissions[permission_name]
                if (role.id, permission.id) not in granted:
                    session.add(ORMRolePermission(role_id=role.id, permission_id=permission.id))

        if admin_email and admin_password:
            email = admin_email.strip().lower()
            existing = session.scalars(select(ORMUser).where(ORMUser.email == email)).first()
            if existing is None:
                session.add(ORMUser(
                    first_name="System",
                    last_name="Admin",
                    email=email,
                    password=hash_password(admin_password),
                    role_id=roles[RoleName.ADMIN.value].id,
                    email_verified=True,
                ))
                logger.info(f"Created bootstrap admin {email}")
        session.commit()


def init_db():
    logger.info(f"Initializing database at: {DATABASE_URL}")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Tables created")

    with engine.connect() as connection:
        seed_reference_data(
            connection,
            admin_email=settings.ADMIN_DEFAULT_EMAIL,
            admin_password=settings.ADMIN_DEFAULT_PASSWORD,
        )
        connection.commit()
    logger.info("Roles, permissions and bootstrap admin ready")
