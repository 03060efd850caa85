"""
Conftest
"""

import random

import pytest
from fastapi.testclient import TestClient

from app import app
from backend import SessionRegistry
from events import RoomEventHandler


class RecordingRouter:
    """Event router fake that keeps every send as (audience, target, event, payload)."""

    def __init__(self):
        self.sent = []

    async def send_to_one(self, connection_id, event, payload):
        self.sent.append(("one", connection_id, event, payload))

    async def send_to_group(self, room_code, event, payload):
        self.sent.append(("group", room_code, event, payload))

    def events(self, name):
        return [entry for entry in self.sent if entry[2] == name]


@pytest.fixture
def registry():
    return SessionRegistry()

@pytest.fixture
def router():
    return RecordingRouter()

@pytest.fixture
def handler(registry, router):
    return RoomEventHandler(registry, router, rng=random.Random(1234))

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
