"""Debate store: live managers in memory, snapshots in a storage backend"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from llm_client import ClientFactory

from .config import PERSIST_BASE_DELAY, PERSIST_MAX_ATTEMPTS, SCORE_REVEAL_DELAY
from .events import DebateEvent
from .exceptions import DebateNotFoundError, SnapshotValidationError, StoreError
from .manager import DebateManager
from .snapshot import dump_snapshot, load_snapshot
from .storage import StorageBackend, is_valid_key
from .types import TERMINAL_STATUSES, DebateConfig

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """The only writer of one debate's snapshot

    submit() is synchronous and only records the newest snapshot; a single
    background task writes snapshots one at a time, so writes for a debate are
    strictly ordered and a burst of updates collapses into the latest one.
    """

    def __init__(
        self,
        debate_id: str,
        backend: StorageBackend,
        max_attempts: int = PERSIST_MAX_ATTEMPTS,
        base_delay: float = PERSIST_BASE_DELAY,
    ):
        self.debate_id = debate_id
        self.backend = backend
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.last_error: Optional[str] = None
        self._pending: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    def submit(self, text: str) -> None:
        self._pending = text
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self._drain(), name=f"persist-{self.debate_id}"
            )

    async def _drain(self) -> None:
        while self._pending is not None:
            text, self._pending = self._pending, None
            await self._write(text)

    async def _write(self, text: str) -> None:
        for attempt in range(self.max_attempts):
            if attempt > 0:
                await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
            try:
                await asyncio.to_thread(self.backend.write, self.debate_id, text)
                self.last_error = None
                return
            except OSError as e:
                self.last_error = str(e)
                logger.warning(
                    f"Failed to persist debate {self.debate_id} "
                    f"(attempt {attempt + 1}/{self.max_attempts}): {e}"
                )
        logger.error(
            f"Giving up persisting debate {self.debate_id}: {self.last_error}; "
            "continuing in memory"
        )

    async def flush(self) -> None:
        """Wait until every submitted snapshot has been handled"""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})


class DebateStore:
    """Registry of debates with crash-safe persistence and recovery

    Construct one per process and pass it to whoever needs it.
    """

    def __init__(
        self,
        backend: StorageBackend,
        client_factory: ClientFactory,
        reveal_delay: float = SCORE_REVEAL_DELAY,
        persist_max_attempts: int = PERSIST_MAX_ATTEMPTS,
        persist_base_delay: float = PERSIST_BASE_DELAY,
    ):
        self.backend = backend
        self.client_factory = client_factory
        self.reveal_delay = reveal_delay
        self.persist_max_attempts = persist_max_attempts
        self.persist_base_delay = persist_base_delay
        self._debates: dict[str, DebateManager] = {}
        self._writers: dict[str, SnapshotWriter] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _locked(self, debate_id: str) -> AsyncIterator[None]:
        """Hold the per-debate lock

        The lock is dropped once nobody holds or waits for it and the debate
        is not registered, so lookups of unknown ids leave nothing behind.
        """
        lock = self._locks.setdefault(debate_id, asyncio.Lock())
        self._lock_users[debate_id] = self._lock_users.get(debate_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[debate_id] -= 1
            if not self._lock_users[debate_id]:
                del self._lock_users[debate_id]
                if debate_id not in self._debates:
                    self._locks.pop(debate_id, None)

    def _attach(self, manager: DebateManager) -> SnapshotWriter:
        writer = SnapshotWriter(
            manager.id,
            self.backend,
            max_attempts=self.persist_max_attempts,
            base_delay=self.persist_base_delay,
        )

        def persist(event: DebateEvent) -> None:
            if event.state_changed:
                writer.submit(dump_snapshot(event.state))

        manager.events.subscribe(persist)
        self._writers[manager.id] = writer
        self._debates[manager.id] = manager
        return writer

    async def create_debate(self, topic: str, background: str, config: DebateConfig) -> str:
        """Register, persist and start a new debate

        Returns:
            The new debate id

        Raises:
            DebateValidationError: If the input is invalid
            StoreError: If the debate could not be registered
        """
        manager = DebateManager.create(
            topic, background, config, self.client_factory, reveal_delay=self.reveal_delay
        )
        logger.info(f"Creating new debate {manager.id} with topic: {topic}")

        try:
            async with self._locked(manager.id):
                writer = self._attach(manager)
                writer.submit(dump_snapshot(manager.get_state()))
                manager.start()
        except Exception as e:
            self._debates.pop(manager.id, None)
            self._writers.pop(manager.id, None)
            raise StoreError(f"Failed to register debate {manager.id}") from e

        return manager.id

    async def get_debate(self, debate_id: str) -> DebateManager:
        """Find a debate in memory, or recover it from storage

        Raises:
            DebateNotFoundError: If it is unknown or its snapshot is unusable
        """
        if not is_valid_key(debate_id):
            raise DebateNotFoundError(debate_id)

        async with self._locked(debate_id):
            manager = self._debates.get(debate_id)
            if manager is not None:
                return manager
            return await self._recover(debate_id)

    async def _recover(self, debate_id: str) -> DebateManager:
        try:
            text = await asyncio.to_thread(self.backend.read, debate_id)
        except UnicodeDecodeError as e:
            await self._quarantine(debate_id, f"unreadable snapshot: {e}")
            raise DebateNotFoundError(debate_id) from e
        except OSError as e:
            raise StoreError(f"Failed to read debate {debate_id}: {e}") from e

        if text is None:
            logger.info(f"Debate {debate_id} not found. Current debates: {list(self._debates)}")
            raise DebateNotFoundError(debate_id)

        try:
            state = load_snapshot(text, expected_id=debate_id)
        except SnapshotValidationError as e:
            await self._quarantine(debate_id, str(e))
            raise DebateNotFoundError(debate_id) from e

        try:
            manager = DebateManager(state, self.client_factory, reveal_delay=self.reveal_delay)
            self._attach(manager)
            manager.restore_state(state)
        except Exception as e:
            self._debates.pop(debate_id, None)
            self._writers.pop(debate_id, None)
            await self._quarantine(debate_id, f"cannot restore debate: {e!r}")
            raise DebateNotFoundError(debate_id) from e
        logger.info(f"Restored debate {debate_id} from storage (status {state.status})")
        return manager

    async def _quarantine(self, debate_id: str, reason: str) -> None:
        logger.error(f"Snapshot of debate {debate_id} is corrupted: {reason}")
        await asyncio.to_thread(self.backend.quarantine, debate_id, reason)

    async def recover_all(self) -> list[str]:
        """Restore every stored debate, resuming interrupted ones

        Returns:
            Ids of the debates that were restored
        """
        ids = await asyncio.to_thread(self.backend.list_ids)
        restored = []
        for debate_id in ids:
            if debate_id in self._debates:
                continue
            try:
                await self.get_debate(debate_id)
            except DebateNotFoundError:
                continue
            except StoreError as e:
                logger.error(f"Skipping debate {debate_id} during recovery: {e}")
                continue
            restored.append(debate_id)
        if restored:
            logger.info(f"Restored {len(restored)} debates from storage")
        return restored

    async def cleanup(self) -> list[str]:
        """Evict finished debates and archive their snapshots

        Returns:
            Ids of the evicted debates
        """
        evicted = []
        for debate_id in list(self._debates):
            async with self._locked(debate_id):
                manager = self._debates.get(debate_id)
                if manager is None or manager.state.status not in TERMINAL_STATUSES:
                    continue
                writer = self._writers.pop(debate_id, None)
                if writer is not None:
                    await writer.flush()
                del self._debates[debate_id]
                await asyncio.to_thread(self.backend.archive, debate_id)
                evicted.append(debate_id)

        if evicted:
            logger.info(f"Cleaned up {len(evicted)} finished debates")
        return evicted

    def persist_error(self, debate_id: str) -> Optional[str]:
        """Last persistence failure of a debate, None when its snapshot is current"""
        writer = self._writers.get(debate_id)
        return writer.last_error if writer else None

    async def flush(self) -> None:
        """Wait for every pending snapshot write"""
        for writer in list(self._writers.values()):
            await writer.flush()

    async def shutdown(self) -> None:
        """Stop every round loop and flush snapshots

        Debates stay in their persisted status and resume on next start.
        """
        for manager in list(self._debates.values()):
            await manager.stop()
        await self.flush()

    @property
    def active_debate_count(self) -> int:
        return len(self._debates)
