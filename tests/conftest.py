"""
Estate CRM test configuration

Provides shared fixtures for async testing with:
- In-memory SQLite database (StaticPool, schema created per test)
- Test client with the request-scoped session overridden
- Factories for companies, users, leads, properties and apartments
- Fake S3 / Textract clients so no test talks to AWS
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("COMPANY_CREATION_SECRET", "let-me-in")
os.environ.setdefault("S3_BUCKET_NAME", "test-bucket")
os.environ.setdefault("AWS_REGION", "eu-central-1")

from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from estate_crm.core.roles import Role
from estate_crm.core.security import create_access_token, hash_password
from estate_crm.core.tenancy import Identity
from estate_crm.db.session import get_db
from estate_crm.models import Apartment, Base, Company, Lead, Property, User
from estate_crm.services import extraction_service, storage_service
from main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "secret123"


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# -----------------------------------------------------------------------------
# Object store / text extraction fakes
# -----------------------------------------------------------------------------

class FakeS3Client:
    def __init__(self) -> None:
        self.deleted: List[str] = []
        self.fail_deletes = False

    def delete_object(self, Bucket, Key):
        if self.fail_deletes:
            from botocore.exceptions import ClientError

            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        self.deleted.append(Key)
        return {}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://signed.example/{operation}/{Params['Key']}?ttl={ExpiresIn}"


class FakeTextractClient:
    def __init__(self, lines: Optional[List[str]] = None, error: bool = False) -> None:
        self.lines = lines or []
        self.error = error
        self.calls: List[dict] = []

    def detect_document_text(self, Document):
        self.calls.append(Document)
        if self.error:
            from botocore.exceptions import ClientError

            raise ClientError(
                {"Error": {"Code": "UnsupportedDocumentException", "Message": "bad"}},
                "DetectDocumentText",
            )
        blocks = [{"BlockType": "PAGE"}]
        blocks += [{"BlockType": "LINE", "Text": line} for line in self.lines]
        return {"Blocks": blocks}


@pytest.fixture
def fake_s3(monkeypatch) -> FakeS3Client:
    fake = FakeS3Client()
    monkeypatch.setattr(storage_service, "get_s3_client", lambda: fake)
    return fake


@pytest.fixture
def fake_textract(monkeypatch) -> FakeTextractClient:
    fake = FakeTextractClient(lines=["Apartament B7", "3 camere", "82.5 mp", "120,000 EUR"])
    monkeypatch.setattr(extraction_service, "get_textract_client", lambda: fake)
    return fake


# -----------------------------------------------------------------------------
# Data Factories
# -----------------------------------------------------------------------------

class CompanyFactory:

    @staticmethod
    async def create(db: AsyncSession, name: str = "Nord Residence", alias: str = "nord") -> Company:
        company = Company(name=name, alias=alias)
        db.add(company)
        await db.commit()
        return company


class UserFactory:

    @staticmethod
    async def create(
        db: AsyncSession,
        company: Company,
        username: str = "agent",
        role: str = Role.user.value,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            company_alias=company.alias,
            company_id=company.id,
            role=role,
        )
        db.add(user)
        await db.commit()
        return user


class PropertyFactory:

    @staticmethod
    async def create(db: AsyncSession, company: Company, **overrides) -> Property:
        values = {"name": "Vila Brașov", "address": "Str. Lungă 10, Brașov", "status": "finalizat"}
        values.update(overrides)
        prop = Property(company_id=company.id, **values)
        db.add(prop)
        await db.commit()
        return prop


class ApartmentFactory:

    @staticmethod
    async def create(db: AsyncSession, company: Company, prop: Property, **overrides) -> Apartment:
        values = {"apartment_number": "A12", "rooms": 2, "area": 54.5, "price": 98000}
        values.update(overrides)
        apartment = Apartment(company_id=company.id, property_id=prop.id, **values)
        db.add(apartment)
        await db.commit()
        return apartment


class LeadFactory:

    @staticmethod
    async def create(db: AsyncSession, company: Company, **overrides) -> Lead:
        interests = overrides.pop("properties_of_interest", [])
        values = {"name": "Ioana Popescu", "phone": "0722000111"}
        values.update(overrides)
        lead = Lead(company_id=company.id, **values)
        lead.set_properties_of_interest(interests)
        db.add(lead)
        await db.commit()
        return lead


def identity_of(user: User) -> Identity:
    return Identity(
        user_id=user.id,
        username=user.username,
        company_alias=user.company_alias,
        company_id=user.company_id,
        role=user.role,
    )


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.username, user.company_alias, user.role)
    return {"Authorization": f"Bearer {token}"}


# -----------------------------------------------------------------------------
# Common tenants
# -----------------------------------------------------------------------------

@pytest_asyncio.fixture
async def company(db_session) -> Company:
    return await CompanyFactory.create(db_session)


@pytest_asyncio.fixture
async def other_company(db_session) -> Company:
    return await CompanyFactory.create(db_session, name="Sud Imobiliare", alias="sud")


@pytest_asyncio.fixture
async def admin(db_session, company) -> User:
    return await UserFactory.create(db_session, company, username="boss", role=Role.admin.value)


@pytest_asyncio.fixture
async def moderator(db_session, company) -> User:
    return await UserFactory.create(db_session, company, username="mod", role=Role.moderator.value)


@pytest_asyncio.fixture
async def power_user(db_session, company) -> User:
    return await UserFactory.create(db_session, company, username="power", role=Role.power_user.value)


@pytest_asyncio.fixture
async def plain_user(db_session, company) -> User:
    return await UserFactory.create(db_session, company, username="plain", role=Role.user.value)


@pytest_asyncio.fixture
async def outsider(db_session, other_company) -> User:
    return await UserFactory.create(db_session, other_company, username="boss", role=Role.admin.value)
