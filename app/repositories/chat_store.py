"""In-memory store for chat histories and active chat bookkeeping."""

from app.schemas.relay_schema import ActiveChat, Message


class ChatStore:
    """Holds per-client message history and active chat entries.

    State lives only in process memory and is lost on restart.
    """

    def __init__(self) -> None:
        self._history: dict[str, list[Message]] = {}
        self._active_chats: dict[str, ActiveChat] = {}

    # --- History ---

    def append_message(self, message: Message) -> None:
        """Append a message to its conversation's history."""
        self._history.setdefault(message.client_id, []).append(message)

    def find_history(self, client_id: str) -> list[Message]:
        """Return a copy of a conversation's history in insertion order."""
        return list(self._history.get(client_id, ()))

    # --- Active chats ---

    def save_active_chat(self, chat: ActiveChat) -> None:
        """Create or overwrite the active chat for its client."""
        self._active_chats[chat.client_id] = chat

    def find_active_chat(self, client_id: str) -> ActiveChat | None:
        return self._active_chats.get(client_id)

    def list_active_chats(self) -> list[ActiveChat]:
        return list(self._active_chats.values())

    def delete_active_chat(self, client_id: str) -> ActiveChat | None:
        return self._active_chats.pop(client_id, None)
