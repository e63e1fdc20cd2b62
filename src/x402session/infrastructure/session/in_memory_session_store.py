"""Process-local session store backed by a dict and a lock."""

from __future__ import annotations

import itertools
import logging
import threading
import time
import uuid
from typing import Callable, List, Optional

from ...crypto.session_token import encode_session_token
from ...domain.session.entities import (
    CreateSessionOptions,
    SessionLookup,
    SessionRecord,
    SessionTokenPayload,
)
from ...domain.session.session_store import SessionStore
from ...domain.shared.signer_protocol import SignMessage

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Session table living in this process only.

    Reads hand out copies, so a record held by a caller never changes under it.
    The lock is never held across an ``await``.

    Expired and ended records stay visible to ``lookup`` for
    ``expired_retention_seconds`` after they went inactive; pruning only evicts
    records older than that.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: int = 3600,
        min_ttl_seconds: int = 60,
        max_ttl_seconds: int = 30 * 24 * 60 * 60,
        expired_retention_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if min_ttl_seconds > max_ttl_seconds:
            raise ValueError("min_ttl_seconds must not exceed max_ttl_seconds")
        self.default_ttl_seconds = default_ttl_seconds
        self.min_ttl_seconds = min_ttl_seconds
        self.max_ttl_seconds = max_ttl_seconds
        self.expired_retention_seconds = expired_retention_seconds
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._insertion: dict[str, int] = {}
        # expires_at is forced to 0 on end, so remember when that happened
        self._ended_at: dict[str, int] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> int:
        return int(self._clock())

    def clamp_ttl(self, ttl_seconds: Optional[int]) -> int:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        return max(self.min_ttl_seconds, min(self.max_ttl_seconds, ttl))

    async def create(
        self, options: CreateSessionOptions, sign_message: SignMessage
    ) -> SessionRecord:
        session_id = str(uuid.uuid4())
        ttl = self.clamp_ttl(options.ttl_seconds)
        created_at = self.now()
        expires_at = created_at + ttl

        payload = SessionTokenPayload(
            session_id=session_id,
            wallet_address=options.wallet_address,
            endpoint=options.endpoint,
            scope=options.scope,
            created_at=created_at,
            expires_at=expires_at,
            payment_tx_hash=options.payment_tx_hash,
            payment_amount=str(options.payment_amount),
        )
        token, signature = await encode_session_token(payload, sign_message)

        record = SessionRecord(
            session_id=session_id,
            endpoint=options.endpoint,
            scope=options.scope,
            wallet_address=options.wallet_address,
            created_at=created_at,
            expires_at=expires_at,
            payment_tx_hash=options.payment_tx_hash,
            payment_amount=options.payment_amount,
            payment_token=options.payment_token,
            payment_recipient=options.payment_recipient,
            session_token=token,
            signature=signature,
            label=options.label,
        )
        with self._lock:
            self._records[session_id] = record
            self._insertion[session_id] = next(self._seq)
            self._prune_locked()
        logger.info(
            "Session created: id=%s endpoint=%s scope=%s ttl=%ss",
            session_id,
            options.endpoint,
            options.scope,
            ttl,
        )
        return record.model_copy()

    def lookup(self, session_id: str) -> SessionLookup:
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return SessionLookup(found=False)
            return SessionLookup(
                found=True,
                record=record.model_copy(),
                expired=not record.is_active(self.now()),
                ended_at=self._ended_at.get(session_id),
            )

    def record_use(self, session_id: str) -> None:
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return
            record.call_count += 1
            record.last_used_at = self.now()
            count = record.call_count
        logger.debug("Session used: id=%s calls=%d", session_id, count)

    def end(self, session_id: str) -> bool:
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return False
            if session_id not in self._ended_at:
                self._ended_at[session_id] = min(self.now(), record.expires_at)
            record.expires_at = 0
        logger.info("Session ended: id=%s", session_id)
        return True

    def list_active(self) -> List[SessionRecord]:
        with self._lock:
            self._prune_locked()
            now = self.now()
            return [r.model_copy() for r in self._records.values() if r.is_active(now)]

    def list_all(self) -> List[SessionRecord]:
        with self._lock:
            return [r.model_copy() for r in self._records.values()]

    def find_by_url(self, url: str) -> Optional[SessionRecord]:
        with self._lock:
            now = self.now()
            active = [r for r in self._records.values() if r.is_active(now)]

            exact = [r for r in active if r.scope == "exact" and r.endpoint == url]
            if exact:
                best = max(
                    exact,
                    key=lambda r: (r.created_at, self._insertion[r.session_id]),
                )
                return best.model_copy()

            prefix = [r for r in active if r.scope == "prefix" and r.covers(url)]
            if not prefix:
                return None
            best = max(
                prefix,
                key=lambda r: (
                    len(r.endpoint),
                    r.created_at,
                    self._insertion[r.session_id],
                ),
            )
            return best.model_copy()

    def size(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._insertion.clear()
            self._ended_at.clear()

    def prune(self) -> int:
        """Evict records inactive for longer than the retention window."""
        with self._lock:
            return self._prune_locked()

    def _inactive_since(self, session_id: str, record: SessionRecord) -> int:
        return self._ended_at.get(session_id, record.expires_at)

    def _prune_locked(self) -> int:
        now = self.now()
        stale = [
            sid
            for sid, r in self._records.items()
            if not r.is_active(now)
            and now - self._inactive_since(sid, r) >= self.expired_retention_seconds
        ]
        for sid in stale:
            del self._records[sid]
            del self._insertion[sid]
            self._ended_at.pop(sid, None)
        if stale:
            logger.debug("Pruned %d expired session(s)", len(stale))
        return len(stale)
