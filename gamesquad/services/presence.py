"""
Presence table - who is online under which display name.
"""
from typing import Callable, Dict, Optional, Tuple


RosterListener = Callable[[Tuple[str, ...]], None]


class PresenceTable:
    """
    Maps live connection ids to display names.

    Names are self-asserted and not unique. The roster is the display names in
    the order their connections first joined. Not locked: the session
    coordinator is the only writer and serializes all calls.
    """

    def __init__(self, on_change: Optional[RosterListener] = None):
        self._names: Dict[str, str] = {}
        self._on_change = on_change

    def bind(self, connection_id: str, display_name: str) -> None:
        """Insert or replace the entry for a connection.

        Replacing keeps the connection's position in the roster.
        """
        self._names[connection_id] = display_name
        self._notify()

    def unbind(self, connection_id: str) -> bool:
        """Remove a connection's entry. Returns False (and notifies nobody) if it had none."""
        if self._names.pop(connection_id, None) is None:
            return False
        self._notify()
        return True

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._names.values())

    def display_name(self, connection_id: str) -> Optional[str]:
        return self._names.get(connection_id)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def _notify(self):
        if self._on_change:
            self._on_change(self.snapshot())
