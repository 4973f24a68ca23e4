"""
Pytest fixtures for VendTrack backend tests.

Provides test database setup, one user per role, and a test client.
"""

import base64
import io

import pytest
from PIL import Image

from vendtrack import create_app
from vendtrack.extensions import db
from vendtrack.services.auth_service import create_user


PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(email="admin@vendtrack.test", password=PASSWORD, name="Admin", role="admin")


@pytest.fixture(scope='function')
def routeman_user(db_session):
    return create_user(email="tech@vendtrack.test", password=PASSWORD, name="Ali Tech", role="routeman")


@pytest.fixture(scope='function')
def other_routeman(db_session):
    return create_user(email="tech2@vendtrack.test", password=PASSWORD, name="Berk Tech", role="routeman")


@pytest.fixture(scope='function')
def viewer_user(db_session):
    return create_user(email="viewer@vendtrack.test", password=PASSWORD, name="Viewer", role="viewer")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def routeman_headers(client, routeman_user):
    return auth_headers(get_auth_token(client, routeman_user.email))


@pytest.fixture(scope='function')
def other_routeman_headers(client, other_routeman):
    return auth_headers(get_auth_token(client, other_routeman.email))


@pytest.fixture(scope='function')
def viewer_headers(client, viewer_user):
    return auth_headers(get_auth_token(client, viewer_user.email))


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def data_uri(width: int = 4, height: int = 3) -> str:
    payload = base64.b64encode(make_image_bytes(width, height, "JPEG")).decode("ascii")
    return f"data:image/jpeg;base64,{payload}"


def ice_cream_payload(**overrides) -> dict:
    payload = {
        "location": "Kadıköy İskele",
        "machineSerialNumber": "2403290003",
        "notes": "Routine cleaning",
        "equipmentChecklist": [
            {"id": 1, "text": "Power cable checked", "completed": True, "completedAt": "2024-03-29T10:00:00Z"},
            {"id": 2, "text": "Display working", "completed": False},
        ],
        "cleaningChecklist": [
            {"id": 1, "text": "Nozzles cleaned", "completed": True},
        ],
        "fillingDetails": {
            "iceCreamBase": {"amount": "2", "unit": "kg", "unitType": "bag"},
            "toppings": [{"name": "Sprinkles", "brand": "X", "amount": "1", "unit": "kg"}],
            "sauces": [],
        },
        "cupStock": "120",
        "beforePhotos": [data_uri()],
        "afterPhotos": [data_uri()],
    }
    payload.update(overrides)
    return payload


def fridge_payload(**overrides) -> dict:
    payload = {
        "reportType": "fridge",
        "location": "Ataşehir Plaza",
        "machineSerialNumber": "2403290009",
        "equipmentChecklist": [],
        "slots": [
            {"id": 1, "commodity": "Water 0.5L", "quantity": "12", "expiryDate": "2024-06-01"},
            {"id": 2, "commodity": "", "quantity": "", "expiryDate": ""},
            {"id": 7, "commodity": "Sandwich", "quantity": "5 pcs"},
        ],
        "beforePhotos": [data_uri()],
        "afterPhotos": [data_uri()],
    }
    payload.update(overrides)
    return payload


def decode_data_uri(value: str) -> Image.Image:
    prefix = "data:image/jpeg;base64,"
    assert value.startswith(prefix)
    return Image.open(io.BytesIO(base64.b64decode(value[len(prefix):])))
