"""
Event envelopes pushed to WebSocket clients
"""
from datetime import datetime, timezone


# Event types
class EventType:
    CONNECTION_CONFIRMED = "connection_confirmed"
    ROSTER_UPDATE = "roster_update"
    RECORD_CREATED = "record_created"
    RECORD_REMOVED = "record_removed"
    ERROR = "error"


# Client -> server operations
class ClientOp:
    JOIN = "join"


def make_event(event_type: str, data: dict = None) -> dict:
    """Build the JSON envelope for one push"""
    return {
        "type": event_type,
        "data": data or {},
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
