"""Session store domain interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..shared.signer_protocol import SignMessage
from .entities import CreateSessionOptions, SessionLookup, SessionRecord


class SessionStore(ABC):
    """Abstract store of session records keyed by session id.

    Everything except ``create`` is synchronous and never blocks; ``create``
    only suspends while the injected signer runs, and inserts the record after
    the signature is back.
    """

    @abstractmethod
    def now(self) -> int:
        """Current Unix time in seconds, as the store sees it."""
        pass

    @abstractmethod
    async def create(
        self, options: CreateSessionOptions, sign_message: SignMessage
    ) -> SessionRecord:
        """Mint, sign and store a new session. Signer failures propagate."""
        pass

    @abstractmethod
    def lookup(self, session_id: str) -> SessionLookup:
        """Pure read; never mutates the store."""
        pass

    @abstractmethod
    def record_use(self, session_id: str) -> None:
        """Count one successful use. Unknown ids are ignored."""
        pass

    @abstractmethod
    def end(self, session_id: str) -> bool:
        """Force a session to expire. Returns False if the id is unknown."""
        pass

    @abstractmethod
    def list_active(self) -> List[SessionRecord]:
        """Prune, then return every record that has not expired."""
        pass

    @abstractmethod
    def list_all(self) -> List[SessionRecord]:
        """Return every stored record, expired ones included."""
        pass

    @abstractmethod
    def find_by_url(self, url: str) -> Optional[SessionRecord]:
        """Return the active session that should authorize ``url``, if any."""
        pass

    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass
