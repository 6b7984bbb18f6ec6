import os

import pytest

os.environ.setdefault("SECRET_KEY", "test")

from jangji import create_app, db
from jangji.config import TestingConfig
from jangji.models.user import User
from syncer.local_store import LocalProgressStore
from syncer.record import Bookmark, ProgressRecord


@pytest.fixture()
def app():
    a = create_app(TestingConfig)
    with a.app_context():
        db.create_all()
        yield a
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user(app):
    u = User(username="reader")
    u.set_password("secret123")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture()
def logged_in(client, user):
    with client.session_transaction() as session:
        session["user_id"] = user.id
    return client


@pytest.fixture()
def local_store(tmp_path):
    store = LocalProgressStore(f"sqlite:///{tmp_path / 'local.db'}")
    yield store
    store.dispose()


def _make_record(owner_id="1", surah=1, ayah=1, at=1000, bookmarks=()):
    return ProgressRecord(
        owner_id=owner_id,
        last_surah=surah,
        last_ayah=ayah,
        last_read_at=at,
        bookmarks=tuple(Bookmark(*b) for b in bookmarks),
    )


@pytest.fixture()
def make_record():
    return _make_record
