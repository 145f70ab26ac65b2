import os
import tempfile

# Settings are read at import time, so set them before anything from app is imported
_tmp_dir = tempfile.mkdtemp(prefix="falgoritma-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'app.db')}"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["OPENAI_API_KEY"] = "sk-test"
os.environ["GOOGLE_CLIENT_ID"] = ""
os.environ["APPLE_CLIENT_ID"] = ""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.db.session import build_engine, get_db
from app.main import app
from app.models.user import User
from app.services.federated import clear_apple_keys_cache
from app.services.interpretation import GenerationResult, get_interpretation_client
from app.utils.auth import create_access_token, hash_password

PHOTO = "aGVsbG8gY29mZmVl"  # base64 "hello coffee"
READING = "Fincanında bir kuş görüyorum, yakında güzel bir haber alacaksın. " * 3


class FakeInterpretationClient:
    """Stands in for the LLM client; returns `result` and records every call."""

    def __init__(self, result=None):
        self.result = result or GenerationResult.success(READING)
        self.calls = []
        self.barrier = None

    def generate(self, photos, subject):
        self.calls.append((list(photos), subject))
        if self.barrier is not None:
            self.barrier.wait(timeout=10)
        return self.result


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm():
    return FakeInterpretationClient()


@pytest.fixture
def client(session_factory, llm):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_interpretation_client] = lambda: llm
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_apple_keys():
    clear_apple_keys_cache()
    yield
    clear_apple_keys_cache()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(email=None, password="secret123", credits=0, onboarded=False, **fields):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            hashed_password=hash_password(password) if password else "",
            credits=credits,
            onboarding_completed=onboarded,
            **fields,
        )
        if onboarded:
            user.full_name = user.full_name or "Ayşe Yılmaz"
            user.birth_date = user.birth_date or date(1990, 5, 15)
            user.relationship_status = user.relationship_status or "single"
            user.profession = user.profession or "Engineer"
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def headers_for():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}
    return _headers
