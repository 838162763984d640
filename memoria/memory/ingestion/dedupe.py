"""Recently-seen cache of content hashes, shared by all sessions."""

from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime

from memoria.memory.models import SessionId, utc_now


class Dedupe:
    """Bounded LRU of (session, content hash) pairs.

    One cache serves every session, so memory stays bounded by
    ``capacity`` however many sessions the engine has seen. Entries are
    still scoped: a hash suppresses a draft only within its own session,
    regardless of kind. Lookups and admissions refresh the entry.
    Methods never await, so each call is atomic with respect to other
    tasks on the event loop.
    """

    def __init__(
        self,
        capacity: int,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._clock = clock
        self._seen: OrderedDict[tuple[SessionId, str], datetime] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def contains(self, session_id: SessionId, content_hash: str) -> bool:
        """Whether the hash was seen recently in the session, refreshing it if so."""
        key = (session_id, content_hash)
        if key not in self._seen:
            return False
        self._seen[key] = self._clock()
        self._seen.move_to_end(key)
        return True

    def admit(self, session_id: SessionId, content_hash: str) -> bool:
        """Record the hash and report whether it was new.

        Returns False (suppress) when the hash is already cached.
        """
        if self.contains(session_id, content_hash):
            return False
        self.remember(session_id, content_hash)
        return True

    def remember(self, session_id: SessionId, content_hash: str) -> None:
        """Insert or refresh a hash, evicting the least recently used entry."""
        key = (session_id, content_hash)
        self._seen[key] = self._clock()
        self._seen.move_to_end(key)
        while len(self._seen) > self._capacity:
            self._seen.popitem(last=False)

    def forget(self, session_id: SessionId, content_hash: str) -> None:
        """Undo an admission whose item was never persisted."""
        self._seen.pop((session_id, content_hash), None)
