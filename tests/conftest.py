from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from asset_collections.service import CollectionService
from auth import security
from auth.schemas import AccessToken, Organization, User
from categories.service import CategoryService
from core.db import DatabaseError, get_transaction
from core.pagination import PaginationResult
from core.permissions import Permissions
from core.services import Services
from core.settings import Settings
from licenses.service import LicenseService
from main import create_app
from models.schemas import Model
from models.service import ModelService
from organizations.service import OrganizationService
from reviews.service import ReviewService
from subt.service import LogFileService, SubTService
from users.service import AccountService
from worlds.schemas import World
from worlds.service import WorldService

TEST_SECRET = "test-secret"

ALICE = User(id=1, identity="auth0|alice", username="alice", name="Alice")
BOB = User(id=2, identity="auth0|bob", username="bob", name="Bob")


class FakeTransaction:
    """Stands in for `core.db.Transaction`; records what the handler did."""

    def __init__(self) -> None:
        self.committed = False
        self.rolled_back = False
        self.closed = False
        self.fail_commit = False

    async def commit(self) -> None:
        if self.closed:
            return None
        self.closed = True
        if self.fail_commit:
            raise DatabaseError("connection lost during commit")
        self.committed = True

    async def rollback(self) -> None:
        if self.closed:
            return None
        self.closed = True
        self.rolled_back = True


class FakeUserStore:
    """In-memory `UserStore`."""

    def __init__(self) -> None:
        self.users = {user.id: user for user in (ALICE, BOB)}
        self.tokens: dict[str, AccessToken] = {}
        self.organizations = {"acme": Organization(id=10, name="acme", creator="alice")}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise DatabaseError("users table unavailable")

    async def get_user_by_id(self, tx, user_id):
        self._check()
        return self.users.get(user_id)

    async def get_user_by_identity(self, tx, identity):
        self._check()
        return next((u for u in self.users.values() if u.identity == identity), None)

    async def get_user_by_username(self, tx, username, *, include_deleted=False):
        self._check()
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_access_token(self, tx, prefix):
        self._check()
        return self.tokens.get(prefix)

    async def get_owner_name(self, tx, name, *, include_deleted=True):
        self._check()
        owners = {u.username for u in self.users.values()} | set(self.organizations)
        return name if name in owners else None

    async def get_organization(self, tx, name, *, include_deleted=False):
        self._check()
        return self.organizations.get(name)

    def add_token(self, user: User, *, expires_at: datetime | None = None) -> str:
        token, prefix, key_hash = security.build_access_token(rounds=4)
        self.tokens[prefix] = AccessToken(
            id=len(self.tokens) + 1,
            user_id=user.id,
            prefix=prefix,
            key=key_hash,
            expires_at=expires_at,
        )
        return token


def make_model(**fields) -> Model:
    data = {"uuid": "11111111-2222", "name": "box", "owner": "alice", "creator": "alice", "version": 1}
    data.update(fields)
    return Model(**data)


def make_world(**fields) -> World:
    data = {"uuid": "33333333-4444", "name": "cave", "owner": "alice", "creator": "alice", "version": 2}
    data.update(fields)
    return World(**data)


def page(page: int = 1, per_page: int = 20, total: int = 0, **kw) -> PaginationResult:
    return PaginationResult(page=page, per_page=per_page, total=total, **kw)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        max_upload_bytes=1024 * 1024,
        cors_origins=(),
        access_token_rounds=4,
    )


@pytest.fixture(name="users")
def users_fixture() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture(name="tx")
def tx_fixture() -> FakeTransaction:
    return FakeTransaction()


@pytest.fixture(name="services")
def services_fixture(users: FakeUserStore) -> Services:
    permissions = MagicMock(spec=Permissions)
    permissions.is_system_admin.return_value = False
    permissions.is_authorized.return_value = True
    return Services(
        users=users,
        permissions=permissions,
        models=MagicMock(spec=ModelService),
        worlds=MagicMock(spec=WorldService),
        collections=MagicMock(spec=CollectionService),
        organizations=MagicMock(spec=OrganizationService),
        categories=MagicMock(spec=CategoryService),
        subt=MagicMock(spec=SubTService),
        logfiles=MagicMock(spec=LogFileService),
        accounts=MagicMock(spec=AccountService),
        licenses=MagicMock(spec=LicenseService),
        reviews=MagicMock(spec=ReviewService),
    )


@pytest.fixture(name="app")
def app_fixture(settings: Settings, services: Services, tx: FakeTransaction):
    app = create_app(settings=settings, services=services)

    async def override_get_transaction():
        try:
            yield tx
        finally:
            await tx.rollback()

    app.dependency_overrides[get_transaction] = override_get_transaction
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture(name="alice_headers")
def alice_headers_fixture(settings: Settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {security.build_identity_token(ALICE.identity, settings)}"}


@pytest.fixture(name="alice_token")
def alice_token_fixture(users: FakeUserStore) -> str:
    return users.add_token(ALICE)


@pytest.fixture(name="expired_token")
def expired_token_fixture(users: FakeUserStore) -> str:
    return users.add_token(ALICE, expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
