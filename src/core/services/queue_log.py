"""
Log-structured persistence for the offline queue.

Layout over the key-value store (``{ns}`` is the namespace, default
``offline_queue``):

    {ns}:entry:{local_id}              sale record, written once
    {ns}:attempt:{local_id}:{n:06d}    append-only attempt records
    {ns}:quarantine:{local_id}         unreadable entries, kept for inspection
    {ns}:meta:{name}                   counters and timestamps

Entries are never rewritten. Attempt counts, the last error and the FAILED
state are all derived from the attempt records, so every write is either a
new key or a delete.
"""

import asyncio
import hashlib
import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError

from src.config import get_logger
from src.core.entities.sale import OfflineQueueEntry, Sale, SyncState
from src.core.interfaces.storage import IKeyValueStore

logger = get_logger(__name__)

RECORD_VERSION = 1


class AttemptKind(str, Enum):
    ERROR = "error"  # transient failure, entry stays pending
    REJECTED = "rejected"  # backend refused, entry becomes failed
    REQUEUED = "requeued"  # manual retry of a failed entry


class CorruptEntryError(ValueError):
    """A stored entry could not be decoded or failed its checksum."""


def _checksum(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(UTC)


class QueueLog:
    """Reads and writes queue records; knows nothing about dispatching."""

    def __init__(self, store: IKeyValueStore, namespace: str = "offline_queue"):
        self._store = store
        self._ns = namespace
        self._write_lock = asyncio.Lock()

    # === Keys ===

    def _entry_key(self, local_id: str) -> str:
        return f"{self._ns}:entry:{local_id}"

    def _attempt_prefix(self, local_id: str) -> str:
        return f"{self._ns}:attempt:{local_id}:"

    def _quarantine_key(self, local_id: str) -> str:
        return f"{self._ns}:quarantine:{local_id}"

    def _meta_key(self, name: str) -> str:
        return f"{self._ns}:meta:{name}"

    # === Encoding ===

    @staticmethod
    def encode_entry(sale: Sale, enqueued_at: datetime, sequence: int) -> str:
        sale_json = sale.model_dump_json()
        return json.dumps(
            {
                "version": RECORD_VERSION,
                "sequence": sequence,
                "enqueued_at": enqueued_at.isoformat(),
                "sale": sale_json,
                "checksum": _checksum(sale_json),
            }
        )

    @staticmethod
    def decode_entry(raw: str) -> tuple[Sale, datetime, int]:
        """
        Decode a stored entry.

        Raises:
            CorruptEntryError: malformed JSON, missing fields or bad checksum
        """
        try:
            record = json.loads(raw)
            sale_json = record["sale"]
            checksum = record["checksum"]
            enqueued_at = datetime.fromisoformat(record["enqueued_at"])
            sequence = int(record["sequence"])
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptEntryError(f"unreadable record: {e}") from e

        if not isinstance(sale_json, str) or _checksum(sale_json) != checksum:
            raise CorruptEntryError("checksum mismatch")

        try:
            sale = Sale.model_validate_json(sale_json)
        except ValidationError as e:
            raise CorruptEntryError(f"invalid sale: {e.error_count()} errors") from e

        return sale, enqueued_at, sequence

    # === Writes ===

    async def append(self, sale: Sale, enqueued_at: datetime | None = None) -> OfflineQueueEntry:
        """
        Persist a new entry. Returns once the store has acknowledged it.

        Appending a local id that is already queued returns the existing entry.
        """
        async with self._write_lock:
            existing = await self.load(sale.local_id)
            if existing is not None:
                return existing

            enqueued_at = enqueued_at or _now()
            sequence = await self._next_sequence()
            pending = sale if sale.sync_state == SyncState.PENDING else sale.mark_pending()
            await self._store.set(
                self._entry_key(sale.local_id),
                self.encode_entry(pending, enqueued_at, sequence),
            )

        return OfflineQueueEntry(sale=pending, enqueued_at=enqueued_at, sequence=sequence)

    async def record_attempt(
        self,
        local_id: str,
        kind: AttemptKind,
        error: str | None = None,
        at: datetime | None = None,
    ) -> None:
        async with self._write_lock:
            existing = await self._store.keys(self._attempt_prefix(local_id))
            number = len(existing) + 1
            await self._store.set(
                f"{self._attempt_prefix(local_id)}{number:06d}",
                json.dumps(
                    {
                        "kind": kind.value,
                        "error": error,
                        "at": (at or _now()).isoformat(),
                    }
                ),
            )

    async def remove(self, local_id: str) -> bool:
        """Delete an entry and its attempt history."""
        async with self._write_lock:
            attempt_keys = await self._store.keys(self._attempt_prefix(local_id))
            existed = await self._store.delete(self._entry_key(local_id))
            await self._store.delete_many(attempt_keys)
        return existed

    async def set_meta(self, name: str, value: str) -> None:
        await self._store.set(self._meta_key(name), value)

    async def get_meta(self, name: str) -> str | None:
        return await self._store.get(self._meta_key(name))

    async def _next_sequence(self) -> int:
        raw = await self.get_meta("sequence")
        sequence = int(raw) + 1 if raw else 1
        await self.set_meta("sequence", str(sequence))
        return sequence

    # === Reads ===

    async def load(self, local_id: str) -> OfflineQueueEntry | None:
        """Load one entry, or None if absent or quarantined."""
        key = self._entry_key(local_id)
        raw = await self._store.get(key)
        if raw is None:
            return None
        return await self._materialize(local_id, raw)

    async def load_all(self) -> list[OfflineQueueEntry]:
        """Load every readable entry, oldest first by (enqueued_at, sequence)."""
        prefix = f"{self._ns}:entry:"
        entries: list[OfflineQueueEntry] = []
        for key in await self._store.keys(prefix):
            raw = await self._store.get(key)
            if raw is None:
                continue
            entry = await self._materialize(key[len(prefix):], raw)
            if entry is not None:
                entries.append(entry)

        entries.sort(key=lambda e: (e.enqueued_at, e.sequence))
        return entries

    async def quarantined(self) -> list[str]:
        prefix = f"{self._ns}:quarantine:"
        return [key[len(prefix):] for key in await self._store.keys(prefix)]

    async def _materialize(self, local_id: str, raw: str) -> OfflineQueueEntry | None:
        try:
            sale, enqueued_at, sequence = self.decode_entry(raw)
            if sale.local_id != local_id:
                raise CorruptEntryError("local id does not match key")
        except CorruptEntryError as e:
            await self._quarantine(local_id, raw, str(e))
            return None

        attempts = await self._load_attempts(local_id)
        entry = OfflineQueueEntry(sale=sale, enqueued_at=enqueued_at, sequence=sequence)
        for attempt in attempts:
            kind = attempt.get("kind")
            at = attempt.get("at")
            if kind in (AttemptKind.ERROR.value, AttemptKind.REJECTED.value):
                entry.attempts += 1
                entry.last_error = attempt.get("error")
                entry.last_attempt_at = datetime.fromisoformat(at) if at else None

        if attempts and attempts[-1].get("kind") == AttemptKind.REJECTED.value:
            entry.sale = sale.mark_failed()
        return entry

    async def _load_attempts(self, local_id: str) -> list[dict[str, Any]]:
        attempts = []
        for key in await self._store.keys(self._attempt_prefix(local_id)):
            raw = await self._store.get(key)
            if raw is None:
                continue
            try:
                attempts.append(json.loads(raw))
            except ValueError:
                logger.warning("offline_queue_attempt_unreadable", key=key)
        return attempts

    async def _quarantine(self, local_id: str, raw: str, reason: str) -> None:
        await self._store.set(
            self._quarantine_key(local_id),
            json.dumps({"reason": reason, "raw": raw, "at": _now().isoformat()}),
        )
        await self._store.delete(self._entry_key(local_id))
        logger.error("offline_queue_entry_quarantined", local_id=local_id, reason=reason)
