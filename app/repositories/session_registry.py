"""In-memory registry of relay sessions and room membership."""

from dataclasses import dataclass
from enum import Enum

from app.schemas.relay_schema import Role


class RoomKind(Enum):
    """Kind of relay room."""

    ADMIN = "admin"
    CLIENT = "client"


@dataclass(frozen=True)
class RoomKey:
    """Structured room identifier.

    Use `ADMIN_ROOM` or `room_for_client()` instead of building keys directly.
    """

    kind: RoomKind
    client_id: str | None = None

    def __str__(self) -> str:
        if self.kind is RoomKind.ADMIN:
            return "admin_room"
        return f"client_{self.client_id}"


ADMIN_ROOM = RoomKey(RoomKind.ADMIN)


def room_for_client(client_id: str) -> RoomKey:
    """Room shared by every connection of one client."""
    if not client_id:
        raise ValueError("client_id is required for a client room")
    return RoomKey(RoomKind.CLIENT, client_id)


@dataclass(frozen=True)
class Session:
    """One joined connection."""

    connection_id: str
    participant_id: str
    display_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def room(self) -> RoomKey:
        if self.is_admin:
            return ADMIN_ROOM
        return room_for_client(self.participant_id)


class SessionRegistry:
    """Tracks joined sessions and a set-valued room membership index."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._rooms: dict[RoomKey, set[str]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, connection_id: str) -> Session | None:
        """Find the session bound to a connection."""
        return self._sessions.get(connection_id)

    def bind(self, session: Session) -> Session | None:
        """Bind a session to its room, replacing any previous binding.

        Returns the replaced session, if the connection had joined before.
        """
        previous = self.unbind(session.connection_id)
        self._sessions[session.connection_id] = session
        self._rooms.setdefault(session.room, set()).add(session.connection_id)
        return previous

    def unbind(self, connection_id: str) -> Session | None:
        """Remove a connection from the registry and its room."""
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return None
        members = self._rooms.get(session.room)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._rooms[session.room]
        return session

    def members(self, room: RoomKey) -> frozenset[str]:
        """Connection ids currently in a room."""
        return frozenset(self._rooms.get(room, ()))

    def has_members(self, room: RoomKey) -> bool:
        return bool(self._rooms.get(room))
