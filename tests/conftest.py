import os
import tempfile
from datetime import timedelta
from decimal import Decimal

_DB_PATH = os.path.join(tempfile.gettempdir(), "messmate_test.db")

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["ENVIRONMENT"] = "testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from messmate.api import deps  # noqa: E402
from messmate.core.security import hash_password  # noqa: E402
from messmate.db.init_db import reset_db  # noqa: E402
from messmate.db.session import SessionLocal, engine  # noqa: E402
from messmate.main import app  # noqa: E402
from messmate.models import InventoryItem, MenuItem, User, utcnow  # noqa: E402
from messmate.models.enums import InventoryCategory, InventoryUnit, MealType, UserRole  # noqa: E402
from messmate.services.auth_service import AuthService  # noqa: E402

PASSWORD = "secret123"


class RecordingNotifier:
    """Stands in for the Socket.IO notifier and keeps every emission."""

    def __init__(self):
        self.events = []

    async def to_user(self, user_id, event, data):
        self.events.append(("user", user_id, event, data))

    async def to_role(self, role, event, data):
        self.events.append(("role", role, event, data))

    async def to_all(self, event, data):
        self.events.append(("all", None, event, data))

    def named(self, event):
        return [e for e in self.events if e[2] == event]


@pytest.fixture()
def db_session():
    reset_db(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def client(db_session, notifier):
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(session, email, role=UserRole.STUDENT, balance="0", **extra):
    user = User(
        name=extra.pop("name", email.split("@")[0].title()),
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        wallet_balance=Decimal(balance),
        **extra,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_menu_item(session, **overrides):
    values = dict(
        date=utcnow().date(),
        meal_type=MealType.LUNCH,
        name="Veg Thali",
        price=Decimal("100.00"),
        discount=Decimal("0"),
        max_quantity=100,
        current_quantity=100,
        items=[{"name": "Dal"}, {"name": "Rice"}],
    )
    values.update(overrides)
    item = MenuItem(**values)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def make_inventory_item(session, **overrides):
    values = dict(
        item_name="Basmati Rice",
        item_code="RICE01",
        category=InventoryCategory.GRAINS,
        current_stock=Decimal("50"),
        minimum_stock=Decimal("20"),
        maximum_stock=Decimal("200"),
        reorder_level=Decimal("10"),
        unit=InventoryUnit.KG,
        unit_price=Decimal("80.00"),
    )
    values.update(overrides)
    item = InventoryItem(**values)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def auth_header(user):
    return {"Authorization": f"Bearer {AuthService.issue_token(user)}"}


@pytest.fixture()
def student(db_session):
    return make_user(db_session, "student@example.com", balance="500.00", student_id="STU001")


@pytest.fixture()
def other_student(db_session):
    return make_user(db_session, "other@example.com", balance="50.00", student_id="STU002")


@pytest.fixture()
def admin(db_session):
    return make_user(db_session, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture()
def student_headers(student):
    return auth_header(student)


@pytest.fixture()
def admin_headers(admin):
    return auth_header(admin)


@pytest.fixture()
def menu_item(db_session):
    return make_menu_item(db_session)


@pytest.fixture()
def inventory_item(db_session):
    return make_inventory_item(db_session)


@pytest.fixture()
def yesterday():
    return utcnow().date() - timedelta(days=1)
