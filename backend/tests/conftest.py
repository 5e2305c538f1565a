from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import get_session
from app.main import app
from app.models.participant import Participant
from app.models.tournament import Tournament, TournamentStatus

TEST_DATABASE_URL = "sqlite:///:memory:"

ORGANIZER_ID = 1

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created and dropped per test
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    from app.models.match import Match  # noqa: F401
    from app.models.participant import Participant  # noqa: F401
    from app.models.round_definition import RoundDefinition  # noqa: F401
    from app.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def organizer_headers(user_id: int = ORGANIZER_ID) -> dict:
    return {"X-User-Id": str(user_id)}


def make_tournament(session: Session, **overrides) -> Tournament:
    """Tournament row organized by ORGANIZER_ID (IN_PROGRESS-ready defaults)."""
    values = dict(
        name="Spring Open",
        organizer_id=ORGANIZER_ID,
        status=TournamentStatus.ACTIVE,
        number_of_rounds=3,
        round_duration_minutes=120,
        score_submission_extra_minutes=15,
    )
    values.update(overrides)
    tournament = Tournament(**values)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


def add_participants(session: Session, tournament: Tournament, count: int, first_user_id: int = 100, **overrides):
    """Confirmed participants with user ids first_user_id.. in registration order."""
    participants = []
    for i in range(count):
        participant = Participant(
            tournament_id=tournament.id,
            user_id=first_user_id + i,
            name=f"Player {i + 1}",
            confirmed=True,
            registered_at=datetime(2026, 3, 1, 9, 0, i),
            **overrides,
        )
        session.add(participant)
        participants.append(participant)
    session.commit()
    for participant in participants:
        session.refresh(participant)
    return participants
