from dataclasses import dataclass


@dataclass
class PresenceEntry:
    user_id: str
    display_name: str
    connection_id: str


class PresenceDirectory:
    """In-memory lookup of which connection currently speaks for a user.

    Used to route invites and to recognise a returning player. The last
    registration for a user wins.
    """

    def __init__(self) -> None:
        self._by_user: dict[str, PresenceEntry] = {}  # user_id -> entry
        self._by_connection: dict[str, str] = {}  # connection_id -> user_id

    def register(self, user_id: str, display_name: str, connection_id: str) -> PresenceEntry:
        previous_user = self._by_connection.get(connection_id)
        if previous_user is not None and previous_user != user_id:
            self._by_user.pop(previous_user, None)
        entry = PresenceEntry(user_id=user_id, display_name=display_name, connection_id=connection_id)
        self._by_user[user_id] = entry
        self._by_connection[connection_id] = user_id
        return entry

    def unregister_connection(self, connection_id: str) -> None:
        """Drop the connection; the user goes offline unless a newer connection took over."""
        user_id = self._by_connection.pop(connection_id, None)
        if user_id is None:
            return
        entry = self._by_user.get(user_id)
        if entry is not None and entry.connection_id == connection_id:
            del self._by_user[user_id]

    def lookup(self, user_id: str) -> PresenceEntry | None:
        return self._by_user.get(user_id)

    def user_for(self, connection_id: str) -> PresenceEntry | None:
        user_id = self._by_connection.get(connection_id)
        return self._by_user.get(user_id) if user_id is not None else None

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_user

    @property
    def online_count(self) -> int:
        return len(self._by_user)
