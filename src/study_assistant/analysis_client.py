# remote analysis of a single pdf: summary, topics and a prioritized study plan
import asyncio
import logging

from pydantic import ValidationError

from .exceptions import MalformedResponseError
from .llm_service import GeminiLLMService, parse_json_response
from .models import EMPTY_RESPONSE_MESSAGE, AnalysisResult, Priority

logger = logging.getLogger(__name__)

# response schema sent with every analysis request
ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "General summary of the document.",
        },
        "topics": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Main topic headings in the document.",
        },
        "studyPlan": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "topic": {"type": "STRING", "description": "Topic that needs to be studied."},
                    "action": {
                        "type": "STRING",
                        "description": "How to study this topic and what to pay attention to.",
                    },
                    "priority": {
                        "type": "STRING",
                        "enum": [p.value for p in Priority],
                        "description": "Study priority.",
                    },
                },
                "required": ["topic", "action", "priority"],
            },
            "description": "Study plan for the student.",
        },
    },
    "required": ["summary", "topics", "studyPlan"],
}


def build_analysis_prompt(language_name: str) -> str:
    priorities = ", ".join(p.value for p in Priority)
    return f"""Analyze this PDF document in detail.

Your tasks:
1. Write a short, concise summary of the content.
2. List the main topic headings covered in the document.
3. Build a detailed study plan that answers the student's question "What should I study?". Give every item a priority level ({priorities}).

Write all text in {language_name}.
Respond only with valid JSON."""


# validate parsed json against the expected analysis shape
def parse_analysis_result(text: str) -> AnalysisResult:
    """Turn the model's JSON text into an AnalysisResult"""
    data = parse_json_response(text)
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Analysis response has an unexpected shape: {e.error_count()} error(s)") from e


# client that sends one encoded document to the ai service
class AnalysisClient:
    def __init__(self, llm_service: GeminiLLMService, language_name: str = "Turkish"):
        self.llm_service = llm_service
        self.prompt = build_analysis_prompt(language_name)

    async def analyze(self, encoded_payload: str, mime_type: str) -> AnalysisResult:
        """Analyze one base64-encoded document"""
        parts = [
            {"inline_data": {"mime_type": mime_type, "data": encoded_payload}},
            {"text": self.prompt},
        ]

        # blocking http call runs in a worker thread
        text = await asyncio.to_thread(self.llm_service.generate_structured, parts, ANALYSIS_SCHEMA)
        if not text:
            raise MalformedResponseError(EMPTY_RESPONSE_MESSAGE)

        result = parse_analysis_result(text)
        logger.info(f"✓ Analysis finished: {len(result.topics)} topics, {len(result.study_plan)} plan items")
        return result
