# llm service using the gemini rest api for structured generation
import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .exceptions import ConfigurationError, MalformedResponseError, RemoteServiceError

logger = logging.getLogger(__name__)


# service for interacting with the gemini generateContent api
class GeminiLLMService:
    """LLM service using Google Gemini with JSON-schema constrained output"""

    # initialize service; no network traffic happens here
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-3-flash-preview",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiLLMService":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout,
        )

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    # verify the api key works and the model exists
    def check_availability(self) -> Dict[str, Any]:
        """Check that the configured Gemini model is reachable"""
        try:
            response = self.session.get(
                f"{self.base_url}/models/{self.model}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteServiceError(f"Cannot connect to Gemini: {e}") from e

        if response.status_code != 200:
            raise RemoteServiceError(f"Gemini API error: {response.status_code} - {response.text}")

        info = response.json()
        logger.info(f"✓ Gemini is reachable with model: {info.get('name', self.model)}")
        return info

    # send one generateContent request and return the concatenated text
    def generate_structured(self, parts: List[Dict[str, Any]], response_schema: Dict[str, Any]) -> str:
        """Generate JSON text constrained to response_schema; '' when the model returns nothing"""
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

        try:
            response = self.session.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise RemoteServiceError("Request timed out. The model might be too slow or overloaded.") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling Gemini: {str(e)}")
            raise RemoteServiceError(f"Gemini request failed: {e}") from e

        if response.status_code != 200:
            raise RemoteServiceError(f"Gemini API error: {response.status_code} - {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Gemini returned a non-JSON envelope: {e}") from e

        return self._extract_text(body)

    @staticmethod
    def _extract_text(body: Any) -> str:
        """Pull the answer text out of a generateContent response"""
        if not isinstance(body, dict):
            raise MalformedResponseError(f"Gemini returned an unexpected envelope: {type(body).__name__}")

        feedback = body.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            raise RemoteServiceError(f"Gemini blocked the request: {feedback['blockReason']}")

        candidates = body.get("candidates") or []
        if not candidates:
            return ""
        if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
            raise MalformedResponseError("Gemini response has no readable candidate")

        content = candidates[0].get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""
        # thinking models may prepend thought parts
        texts = [p.get("text") or "" for p in parts if isinstance(p, dict) and not p.get("thought")]
        return "".join(texts).strip()

    # test if the gemini connection is working
    def test_connection(self) -> bool:
        """Test if the LLM service is working"""
        try:
            self.check_availability()
            return True
        except Exception as e:
            logger.error(f"✗ LLM test failed: {str(e)}")
            return False


# parse model output as json, tolerating code fences or chatter around the payload
def parse_json_response(text: str) -> Any:
    """Parse JSON text returned by the model"""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # try to extract the outermost object or array from the response
        json_match = re.search(r"(\{.*\}|\[.*\])", text, re.DOTALL)
        if json_match:
            try:
                return json.loads(json_match.group())
            except json.JSONDecodeError as e:
                raise MalformedResponseError(f"Could not parse JSON from response: {e}") from e
        raise MalformedResponseError("Could not parse JSON from response")
