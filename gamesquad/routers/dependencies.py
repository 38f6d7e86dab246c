"""
Shared request dependencies.

The store and coordinator are created in the app lifespan and live on app.state,
so each running event loop gets its own coordinator lock and queues.
"""
from starlette.requests import HTTPConnection

from ..services.record_store import RecordStore
from ..services.session import SessionCoordinator


def get_record_store(conn: HTTPConnection) -> RecordStore:
    return conn.app.state.record_store


def get_coordinator(conn: HTTPConnection) -> SessionCoordinator:
    return conn.app.state.coordinator
