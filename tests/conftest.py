# tests/conftest.py
"""
Shared fixtures: an app on in-memory SQLite, an in-memory photo store in
place of Cloudinary and an in-memory Redis stand-in for session tokens.
"""

import io
from datetime import date

import pytest

from app import create_app
from app.config import Config
from db import extensions
from db.extensions import db
from models.user import User
from services.auth_service import AuthService
from services.cloudinary_services import Attachment
from services.exceptions import AttachmentStoreError
from services.slot_service import SlotService
from services.sport_service import SportService
from werkzeug.security import generate_password_hash

BOOKING_DAY = date(2025, 1, 15)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CLOUDINARY_CLOUD_NAME = None
    CLOUDINARY_API_KEY = None
    CLOUDINARY_API_SECRET = None
    APPROVAL_PHOTO_FOLDER = 'approval-photos'
    REQUIRE_APPROVAL_PHOTO = True
    FACILITY_TIMEZONE = 'UTC'
    SLOT_MIN_HOUR = 7
    SLOT_MAX_HOUR = 22
    ADMIN_SETUP_KEY = 'setup-key'
    REDIS_URL = None
    CORS_ORIGINS = ['http://localhost:3000']


class InMemoryPhotoStore:
    """Stands in for CloudinaryPhotoStore; records every delete call."""

    def __init__(self, folder='approval-photos'):
        self.folder = folder
        self.objects = {}
        self.delete_calls = []
        self.fail_deletes = set()
        self._counter = 0

    def put(self, file_obj, filename):
        self._counter += 1
        key = f"{self.folder}/{self._counter}-{filename}"
        self.objects[key] = file_obj.read() if hasattr(file_obj, 'read') else file_obj
        return Attachment(key=key, url=self.url_for(key), filename=filename)

    def add(self, filename='photo.jpg', data=b'jpeg-bytes'):
        return self.put(io.BytesIO(data), filename)

    def delete(self, key):
        self.delete_calls.append(key)
        if key in self.fail_deletes:
            raise AttachmentStoreError(f"Delete failed for {key}: timeout")
        if key not in self.objects:
            raise AttachmentStoreError(f"Delete failed for {key}: not found")
        del self.objects[key]

    def exists(self, key):
        return key in self.objects

    def list(self, prefix=None, limit=500):
        prefix = prefix or f"{self.folder}/"
        keys = sorted(key for key in self.objects if key.startswith(prefix))[:limit]
        return [
            {'key': key, 'url': self.url_for(key), 'size': len(self.objects[key]), 'last_modified': None}
            for key in keys
        ]

    def url_for(self, key):
        return f"https://res.cloudinary.com/test/image/upload/{key}"


class InMemoryRedis:
    """The handful of redis-py calls the auth service makes."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    def setex(self, name, time, value):
        self.values[name] = str(value)
        self.ttls[name] = time
        return True

    def get(self, name):
        return self.values.get(name)

    def delete(self, *names):
        removed = 0
        for name in names:
            if self.values.pop(name, None) is not None:
                removed += 1
            self.ttls.pop(name, None)
        return removed

    def ping(self):
        return True


@pytest.fixture
def redis_stub():
    return InMemoryRedis()


@pytest.fixture
def app(redis_stub, monkeypatch):
    app = create_app(TestConfig)
    monkeypatch.setattr(extensions, 'redis_client', redis_stub)
    app.extensions['photo_store'] = InMemoryPhotoStore()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions['photo_store']


def make_user(username, is_admin=False, password='secret123'):
    user = User(
        username=username,
        password_hash=generate_password_hash(password),
        is_admin=is_admin
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def staff(app):
    return make_user('frontdesk')


@pytest.fixture
def admin(app):
    return make_user('manager', is_admin=True)


@pytest.fixture
def staff_headers(staff):
    return {'Authorization': f"Bearer {AuthService.issue_token(staff)}"}


@pytest.fixture
def admin_headers(admin):
    return {'Authorization': f"Bearer {AuthService.issue_token(admin)}"}


@pytest.fixture
def slots(app):
    created, _ = SlotService.ensure_default_slots()
    return created


@pytest.fixture
def padel(app):
    sport, courts = SportService.create_sport('padel', 'Padel')
    return sport, courts


@pytest.fixture
def court(padel):
    return padel[1][0]
