# study session: explicit application context wiring storage, ai clients and state
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError

from .aggregation import build_topic_index, completed_results, has_completed
from .analysis_client import AnalysisClient
from .config import Settings
from .exceptions import PersistenceError, RoadmapInProgressError
from .lifecycle import FileLifecycleStore
from .llm_service import GeminiLLMService
from .models import RoadmapStep, TopicIndex
from .report_generator import render_html_report, report_filename
from .roadmap_client import RoadmapClient, roadmap_steps_adapter
from .storage import ROADMAP_STORAGE_KEY, JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)


# persisted roadmap, replaced wholesale on every successful generation
class RoadmapState:
    def __init__(self, storage: KeyValueStore, storage_key: str = ROADMAP_STORAGE_KEY):
        self.storage = storage
        self.storage_key = storage_key
        self.steps: List[RoadmapStep] = []

    def load(self):
        try:
            raw = self.storage.get(self.storage_key)
            self.steps = roadmap_steps_adapter.validate_python(json.loads(raw)) if raw else []
        except (PersistenceError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to load roadmap: {e}")
            self.steps = []

    def replace(self, steps: List[RoadmapStep]):
        self.steps = list(steps)
        try:
            data = [step.model_dump(mode="json", by_alias=True) for step in self.steps]
            self.storage.set(self.storage_key, json.dumps(data, ensure_ascii=False))
        except PersistenceError as e:
            logger.error(f"Failed to save roadmap: {e}")

    def clear(self):
        self.steps = []
        try:
            self.storage.remove(self.storage_key)
        except PersistenceError as e:
            logger.error(f"Failed to erase roadmap: {e}")


class StudySession:
    """Everything one running application needs, built explicitly and passed around.

    Use ``await session.start()`` / ``await session.stop()``, or
    ``async with session:``.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        analysis_client: AnalysisClient,
        roadmap_client: RoadmapClient,
        language: str = "tr",
    ):
        self.storage = storage
        self.language = language
        self.roadmap_client = roadmap_client
        self.files = FileLifecycleStore(analysis_client, storage)
        self.roadmap = RoadmapState(storage)
        self._roadmap_busy = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "StudySession":
        """Build a session backed by Gemini and JSON files under settings.data_dir"""
        llm_service = GeminiLLMService.from_settings(settings)
        return cls(
            storage=JsonFileStore(settings.data_dir),
            analysis_client=AnalysisClient(llm_service, settings.language_name),
            roadmap_client=RoadmapClient(llm_service, settings.language_name),
            language=settings.target_language,
        )

    async def start(self):
        await self.files.start()
        self.roadmap.load()
        logger.info(f"Study session started ({len(self.files.files)} files, {len(self.roadmap.steps)} roadmap steps)")

    async def stop(self):
        await self.files.stop()
        logger.info("Study session stopped")

    async def __aenter__(self) -> "StudySession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def topic_index(self) -> TopicIndex:
        return build_topic_index(self.files.files, self.language)

    @property
    def can_generate_roadmap(self) -> bool:
        return has_completed(self.files.files)

    @property
    def roadmap_in_progress(self) -> bool:
        return self._roadmap_busy

    async def generate_roadmap(self) -> Optional[List[RoadmapStep]]:
        """Regenerate the roadmap from completed analyses.

        Returns None without calling the AI service when nothing is completed.
        Errors propagate and leave the previous roadmap untouched.
        """
        results = completed_results(self.files.files)
        if not results:
            logger.info("No completed analyses; roadmap generation skipped")
            return None
        if self._roadmap_busy:
            raise RoadmapInProgressError("A roadmap is already being generated")

        self._roadmap_busy = True
        try:
            steps = await self.roadmap_client.build_roadmap(results)
        finally:
            self._roadmap_busy = False

        self.roadmap.replace(steps)
        return self.roadmap.steps

    def clear_all(self, confirm: Callable[[str], bool]) -> bool:
        """Erase files and roadmap (memory and durable store) after confirmation"""
        if not self.files.clear_all(confirm):
            return False
        self.roadmap.clear()
        return True

    def render_report(self, generated_at: Optional[datetime] = None) -> str:
        index = self.topic_index()
        return render_html_report(
            self.files.files,
            index.all_topics,
            index.high_priority_topics,
            self.roadmap.steps,
            generated_at=generated_at,
        )

    def export_report(self, output_dir: Path, generated_at: Optional[datetime] = None) -> Path:
        """Write the HTML report to output_dir and return its path"""
        generated_at = generated_at or datetime.now()
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / report_filename(generated_at.date())
        path.write_text(self.render_report(generated_at), encoding="utf-8")
        logger.info(f"✓ Report saved: {path}")
        return path
