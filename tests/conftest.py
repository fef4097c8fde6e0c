"""Shared fixtures: sample logs and an app backed by in-memory SQLite."""

import os

# must be set before ot_trace.db.session is imported
os.environ.setdefault("OT_TRACE_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ot_trace.api.deps import get_db
from ot_trace.db.models import Base
from ot_trace.db.schemas.client_log import (
    AwaitingOperation,
    ClientLogItem,
    ReceivedServerOperationWhileAwaitingOperation,
    Synchronized,
    UserEditImmediatelySentToServer,
)
from tests.factories import make_op


@pytest.fixture
def conflict_entry():
    return ReceivedServerOperationWhileAwaitingOperation(
        received_operation=make_op("X"),
        transformed_received_operation=make_op("X", ["Y"]),
        awaited_operation=make_op("Y"),
        transformed_awaited_operation=make_op("Y", ["X"]),
    )


@pytest.fixture
def sample_log(conflict_entry):
    sent = make_op("Y", base="insert 'a' at 0")
    return [
        ClientLogItem(
            entry=UserEditImmediatelySentToServer(operation=sent),
            new_state=AwaitingOperation(awaited_operation=sent),
        ),
        ClientLogItem(
            entry=conflict_entry,
            new_state=AwaitingOperation(awaited_operation=make_op("Y", ["X"])),
        ),
    ]


@pytest.fixture
def initial_state():
    return Synchronized(server_revision=0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    from ot_trace.main import app

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
