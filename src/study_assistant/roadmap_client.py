# builds one ordered curriculum from every completed analysis
import asyncio
import json
import logging
from typing import List, Sequence

from pydantic import TypeAdapter, ValidationError

from .exceptions import MalformedResponseError
from .llm_service import GeminiLLMService, parse_json_response
from .models import AnalysisResult, RoadmapStep

logger = logging.getLogger(__name__)

ROADMAP_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "stepName": {"type": "STRING", "description": "Phase label, e.g. 'Step 1' or 'Week 1'."},
            "title": {"type": "STRING", "description": "Short title of the phase."},
            "description": {"type": "STRING", "description": "What to do in this phase and why."},
            "topics": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "Topics covered in this phase.",
            },
        },
        "required": ["stepName", "title", "description", "topics"],
    },
}

roadmap_steps_adapter = TypeAdapter(List[RoadmapStep])


def condense_results(results: Sequence[AnalysisResult]) -> List[dict]:
    """Keep only what the roadmap needs: a 1-based document index, summary and study plan"""
    return [
        {
            "index": i,
            "summary": result.summary,
            "studyPlan": [item.model_dump(mode="json", by_alias=True) for item in result.study_plan],
        }
        for i, result in enumerate(results, start=1)
    ]


def build_roadmap_prompt(results: Sequence[AnalysisResult], language_name: str) -> str:
    documents = json.dumps(condense_results(results), ensure_ascii=False, indent=2)
    return f"""You are given the analyses of {len(results)} study documents a student uploaded.

DOCUMENT ANALYSES:
{documents}

YOUR TASK:
Merge all of them into one personalized learning roadmap.

REQUIREMENTS:
1. Order the material logically, from foundational topics to advanced ones.
2. Split the roadmap into explicit steps or phases.
3. When the same topic appears in several documents, cover it once (deduplicate).
4. Write all text in {language_name}.

Return ONLY the JSON array of steps."""


def parse_roadmap(text: str) -> List[RoadmapStep]:
    data = parse_json_response(text)
    try:
        return roadmap_steps_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Roadmap response has an unexpected shape: {e.error_count()} error(s)") from e


# client that asks the ai service for a cross-document curriculum
class RoadmapClient:
    def __init__(self, llm_service: GeminiLLMService, language_name: str = "Turkish"):
        self.llm_service = llm_service
        self.language_name = language_name

    async def build_roadmap(self, results: Sequence[AnalysisResult]) -> List[RoadmapStep]:
        """Generate roadmap steps; an empty reply yields an empty roadmap"""
        parts = [{"text": build_roadmap_prompt(results, self.language_name)}]

        text = await asyncio.to_thread(self.llm_service.generate_structured, parts, ROADMAP_SCHEMA)
        if not text:
            logger.warning("Roadmap request returned an empty body")
            return []

        steps = parse_roadmap(text)
        logger.info(f"✓ Roadmap built from {len(results)} documents: {len(steps)} steps")
        return steps
