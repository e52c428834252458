from threading import Lock
from typing import Iterable


class SessionStore:
    """Per-session record of served items (template ids or question ids)."""

    def is_used(self, session_id: str, key: str) -> bool:
        raise NotImplementedError

    def mark_used(self, session_id: str, key: str) -> None:
        raise NotImplementedError

    def used(self, session_id: str) -> frozenset[str]:
        raise NotImplementedError

    def reset(self, session_id: str) -> None:
        """Forget what was served but keep the session alive."""
        raise NotImplementedError

    def clear(self, session_id: str) -> None:
        """Session ended: drop it entirely."""
        raise NotImplementedError

    def has_session(self, session_id: str) -> bool:
        raise NotImplementedError

    def active_sessions(self) -> list[str]:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._data: dict[str, set[str]] = {}

    def _bucket(self, session_id: str) -> set[str]:
        return self._data.setdefault(session_id, set())

    def is_used(self, session_id: str, key: str) -> bool:
        return key in self._data.get(session_id, ())

    def mark_used(self, session_id: str, key: str) -> None:
        self._bucket(session_id).add(key)

    def used(self, session_id: str) -> frozenset[str]:
        return frozenset(self._data.get(session_id, ()))

    def reset(self, session_id: str) -> None:
        self._bucket(session_id).clear()

    def clear(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._data

    def active_sessions(self) -> list[str]:
        return list(self._data)


class TemplateUsageCounter:
    """Cross-session serve count per template id; increments are atomic."""

    def __init__(self):
        self._counts: dict[str, int] = {}
        self._lock = Lock()

    def increment(self, template_id: str) -> int:
        with self._lock:
            self._counts[template_id] = self._counts.get(template_id, 0) + 1
            return self._counts[template_id]

    def get(self, template_id: str) -> int:
        return self._counts.get(template_id, 0)

    def least_used_first(self, template_ids: Iterable[str]) -> list[str]:
        # sorted() is stable: ties keep catalog order
        return sorted(template_ids, key=self.get)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)
