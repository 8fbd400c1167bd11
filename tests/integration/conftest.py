import sys
from pathlib import Path

# Add monorepo root to Python path for libs access
monorepo_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(monorepo_root))

import bcrypt
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_unit_of_work
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.entities import User, UserRole

ADMIN_EMAIL = "admin@condo.io"
OPERATOR_EMAIL = "guard@condo.io"
PASSWORD = "SecurePass123!"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def users(db_session):
    """One admin and one operator sharing the same password. Returns their ids."""
    password_hash = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(12)).decode()
    admin = User(email=ADMIN_EMAIL, name="Admin", password_hash=password_hash, role=UserRole.admin)
    operator = User(
        email=OPERATOR_EMAIL, name="Guard", password_hash=password_hash, role=UserRole.operator
    )
    db_session.add(admin)
    db_session.add(operator)
    await db_session.commit()
    # plain ids: request rollbacks expire the ORM instances
    return {"admin": admin.id, "operator": operator.id}


@pytest_asyncio.fixture
async def client(db_session, users):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login(client):
    """POST /auth/login; defaults to the operator account"""

    async def _login(email=OPERATOR_EMAIL, password=PASSWORD, headers=None):
        return await client.post(
            "/auth/login", json={"email": email, "password": password}, headers=headers or {}
        )

    return _login


@pytest.fixture
def admin_headers(login):
    """Authorization header factory for the admin account"""

    async def _headers():
        response = await login(ADMIN_EMAIL)
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    return _headers
