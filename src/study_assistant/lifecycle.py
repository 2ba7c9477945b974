# tracks uploaded files through idle -> analyzing -> completed | error
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from .analysis_client import AnalysisClient
from .exceptions import MissingPayloadError, PersistenceError
from .file_helpers import encode_payload, generate_id
from .models import (
    CLEAR_CONFIRMATION_PROMPT,
    MISSING_PAYLOAD_MESSAGE,
    RELOAD_INTERRUPTED_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    AnalysisResult,
    FileStatus,
    RawFile,
    TrackedFile,
)
from .storage import FILES_STORAGE_KEY, KeyValueStore

logger = logging.getLogger(__name__)

Listener = Callable[[List[TrackedFile]], None]


# command emitted by an analysis task, applied by the single writer
@dataclass(frozen=True)
class StatusUpdate:
    file_id: str
    status: FileStatus
    result: Optional[AnalysisResult] = None
    error_message: Optional[str] = None


# restored entries have no payload, so nothing can move them forward again
INTERRUPTED_STATUSES = (FileStatus.IDLE.value, FileStatus.UPLOADING.value, FileStatus.ANALYZING.value)


def correct_interrupted(entries: Iterable[dict]) -> List[dict]:
    """Mark entries that had not settled when the process stopped as failed"""
    corrected = []
    for entry in entries:
        if entry.get("status") in INTERRUPTED_STATUSES:
            entry = {**entry, "status": FileStatus.ERROR.value, "errorMessage": RELOAD_INTERRUPTED_MESSAGE}
            entry.pop("result", None)
        corrected.append(entry)
    return corrected


class FileLifecycleStore:
    """Owns the ordered file collection (most recent first) and is its only writer.

    Analysis tasks never touch the collection directly: they put StatusUpdate
    commands on a queue that one consumer task applies in order.
    """

    def __init__(
        self,
        analysis_client: AnalysisClient,
        storage: KeyValueStore,
        storage_key: str = FILES_STORAGE_KEY,
        id_factory: Callable[[], str] = generate_id,
        clock: Callable[[], float] = time.time,
    ):
        self.analysis_client = analysis_client
        self.storage = storage
        self.storage_key = storage_key
        self.id_factory = id_factory
        self.clock = clock

        self._files: List[TrackedFile] = []
        self._updates: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._tasks: Dict[str, asyncio.Task] = {}
        self._listeners: List[Listener] = []

    @property
    def files(self) -> List[TrackedFile]:
        """Snapshot of the collection"""
        return list(self._files)

    def get(self, file_id: str) -> Optional[TrackedFile]:
        return next((f for f in self._files if f.id == file_id), None)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def started(self) -> bool:
        return self._consumer is not None

    async def start(self):
        """Restore persisted files and start the update consumer"""
        if self.started:
            return
        self.restore()
        self._updates = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume_updates())

    async def stop(self):
        """Cancel in-flight analyses, apply queued updates, stop the consumer"""
        if not self.started:
            return
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self._updates.join()
        self._consumer.cancel()
        await asyncio.gather(self._consumer, return_exceptions=True)
        self._consumer = None
        self._updates = None

    def restore(self):
        """Load the persisted collection, correcting interrupted analyses"""
        try:
            raw = self.storage.get(self.storage_key)
        except PersistenceError as e:
            logger.error(f"Failed to load history: {e}")
            return
        if not raw:
            return

        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to load history: {e}")
            return
        if not isinstance(entries, list):
            logger.error("Failed to load history: stored value is not a list")
            return

        entries = [e for e in entries if isinstance(e, dict)]
        interrupted = sum(1 for e in entries if e.get("status") in INTERRUPTED_STATUSES)

        files = []
        for entry in correct_interrupted(entries):
            try:
                files.append(TrackedFile.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable stored file entry {entry.get('id')!r}: {e.error_count()} error(s)")
        self._files = files
        logger.info(f"Restored {len(files)} files ({interrupted} interrupted)")

        if interrupted:
            self._persist()

    def add_files(self, payloads: Sequence[RawFile]) -> List[TrackedFile]:
        """Track new files (front of the list) and start one analysis per file"""
        if not self.started:
            raise RuntimeError("FileLifecycleStore.start() must be awaited before adding files")

        now_ms = int(self.clock() * 1000)
        new_entries = [
            TrackedFile(
                id=self.id_factory(),
                file_name=payload.name,
                file_size=payload.size,
                file_type=payload.content_type,
                status=FileStatus.IDLE,
                timestamp=now_ms,
                raw_payload=payload.data,
            )
            for payload in payloads
        ]
        if not new_entries:
            return []

        self._files = new_entries + self._files
        self._changed()
        logger.info(f"Added {len(new_entries)} file(s): {', '.join(e.file_name for e in new_entries)}")

        # fire-and-forget: no cap, every file gets its own task
        for entry in new_entries:
            task = asyncio.create_task(self._analyze(entry))
            self._tasks[entry.id] = task
            task.add_done_callback(lambda _t, file_id=entry.id: self._tasks.pop(file_id, None))

        return new_entries

    def remove_file(self, file_id: str) -> bool:
        """Remove one file; in-flight analysis results for it are discarded later"""
        remaining = [f for f in self._files if f.id != file_id]
        if len(remaining) == len(self._files):
            return False
        self._files = remaining
        self._changed()
        logger.info(f"Removed file {file_id}")
        return True

    def clear_all(self, confirm: Callable[[str], bool]) -> bool:
        """Empty the collection and erase persisted state, only after confirmation"""
        if not confirm(CLEAR_CONFIRMATION_PROMPT):
            logger.info("Clear all cancelled")
            return False

        self._files = []
        self._notify()
        try:
            self.storage.remove(self.storage_key)
        except PersistenceError as e:
            logger.error(f"Failed to erase history: {e}")
        logger.info("Cleared all files")
        return True

    def update_status(
        self,
        file_id: str,
        status: FileStatus,
        result: Optional[AnalysisResult] = None,
        error_message: Optional[str] = None,
    ):
        """Overwrite status and outcome of one file; no-op if it was removed"""
        for index, entry in enumerate(self._files):
            if entry.id == file_id:
                break
        else:
            logger.debug(f"Ignoring {status.value} update for removed file {file_id}")
            return

        files = list(self._files)
        files[index] = entry.with_status(status, result=result, error_message=error_message)
        self._files = files
        self._changed()

    async def flush(self):
        """Wait until every queued update has been applied"""
        if self._updates is not None:
            await self._updates.join()

    async def join(self, file_ids: Optional[Iterable[str]] = None):
        """Wait for in-flight analyses (all, or the given ids) and their updates"""
        wanted = set(file_ids) if file_ids is not None else None
        while True:
            pending = [t for fid, t in self._tasks.items() if wanted is None or fid in wanted]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
        await self.flush()

    async def _analyze(self, entry: TrackedFile):
        """Analysis procedure for one file; results go through the update queue"""
        await self._updates.put(StatusUpdate(entry.id, FileStatus.ANALYZING))

        try:
            if entry.raw_payload is None:
                raise MissingPayloadError(MISSING_PAYLOAD_MESSAGE)

            encoded = encode_payload(entry.raw_payload)
            result = await self.analysis_client.analyze(encoded, entry.file_type)
        except Exception as e:
            logger.error(f"Error processing file {entry.file_name}: {str(e)}")
            message = str(e) or UNKNOWN_ERROR_MESSAGE
            await self._updates.put(StatusUpdate(entry.id, FileStatus.ERROR, error_message=message))
            return

        logger.info(f"✓ Analyzed {entry.file_name}")
        await self._updates.put(StatusUpdate(entry.id, FileStatus.COMPLETED, result=result))

    async def _consume_updates(self):
        while True:
            update = await self._updates.get()
            try:
                self.update_status(update.file_id, update.status, update.result, update.error_message)
            except Exception:
                logger.exception(f"Failed to apply {update.status.value} update for {update.file_id}")
            finally:
                self._updates.task_done()

    def _changed(self):
        self._notify()
        self._persist()

    def _notify(self):
        snapshot = self.files
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("File listener failed")

    def _persist(self):
        """Best-effort write of all files without their payloads"""
        try:
            data = [f.to_storage() for f in self._files]
            self.storage.set(self.storage_key, json.dumps(data, ensure_ascii=False))
        except (PersistenceError, TypeError, ValueError) as e:
            logger.error(f"Failed to save history: {e}")
