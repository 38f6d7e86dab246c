"""
Shared fixtures. The environment is pointed at a throwaway data directory before
anything imports gamesquad, since settings and the engine are built at import.
"""
import asyncio
import os
import tempfile

import pytest

os.environ.setdefault("GAMESQUAD_DATA_DIR", tempfile.mkdtemp(prefix="gamesquad-test-"))
os.environ.setdefault("GAMESQUAD_PRUNE_INTERVAL", "0")


class FakeClient:
    """Stands in for a WebSocket: records pushes, optionally fails or stalls."""

    def __init__(self, fail: bool = False, stall: bool = False):
        self.events = []
        self.fail = fail
        self.stall = stall
        self.hung_up = False
        self._release = asyncio.Event()

    async def send(self, event):
        if self.fail:
            raise ConnectionResetError("peer went away")
        if self.stall:
            await self._release.wait()
        self.events.append(event)

    async def hangup(self):
        self.hung_up = True

    def of_type(self, event_type):
        return [e["data"] for e in self.events if e["type"] == event_type]

    def rosters(self):
        return [d["users"] for d in self.of_type("roster_update")]


async def settle(rounds: int = 20):
    """Let pump tasks drain their outboxes."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture(name="settle")
def settle_fixture():
    return settle
