import os
from datetime import date

# Keep the import-time engine of the app away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from club_portal.config import Settings, get_settings
from club_portal.database import build_engine, create_tables, get_db
from club_portal.services import gateway


@pytest.fixture
def engine():
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite:///:memory:",
        admin_email="admin@club.test",
        admin_password="s3cret",
        secret_key="test-secret",
        mentors=["Kaushik", "Meghraj", "Shailesh", "Darshan"],
    )


@pytest.fixture
def client(session_factory, settings):
    from club_portal.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "first_name": "Student{}".format(n),
            "last_name": "Test",
            "email": "student{}@example.com".format(n),
            "roll_number": "R{}".format(n),
            "prn_number": "PRN{:04d}".format(n),
            "date_of_birth": date(2004, 1, 1),
            "branch": "Computer",
            "division": "A",
            "gender": "Male",
            "address": "Pune",
            "is_paid": False,
            "mentor": "Kaushik",
        }
        data.update(overrides)
        return gateway.create_or_update_student(db, data)

    return _make


@pytest.fixture
def make_session(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": "DYS{}".format(counter["n"]),
            "name": "Session {}".format(counter["n"]),
            "date": date(2026, 10, counter["n"]),
            "time": "10:00",
            "venue": "Hall A",
            "status": "active",
            "type": "Quiz",
            "session_code": "SELF2024",
        }
        data.update(overrides)
        return gateway.add_session(db, data)

    return _make


@pytest.fixture
def make_test(db):
    def _make(session_id, correct_answers=(1, 0), title="Quiz"):
        test = gateway.create_test(db, session_id, title)
        gateway.replace_questions(db, test.id, [
            {"question": "Q{}".format(i + 1), "options": ["a", "b", "c"], "correct_answer": c}
            for i, c in enumerate(correct_answers)
        ])
        return gateway.get_test(db, test.id)

    return _make
