# error types raised across the study assistant


class StudyAssistantError(Exception):
    """Base class for all study assistant errors"""


# raised when the raw document bytes are gone at analysis time
class MissingPayloadError(StudyAssistantError):
    """The file payload is not available (e.g. after a restart)"""


# network failures, non-2xx replies, blocked prompts
class RemoteServiceError(StudyAssistantError):
    """The AI service call failed"""


# empty, non-json or wrongly shaped structured output
class MalformedResponseError(StudyAssistantError):
    """The AI service returned content we cannot accept"""


class PersistenceError(StudyAssistantError):
    """Reading or writing the durable store failed"""


class ConfigurationError(StudyAssistantError):
    """Required configuration (e.g. the API key) is missing"""


# rejected before any tracking happens
class InvalidUploadError(StudyAssistantError):
    """The uploaded file is not a readable PDF or is too large"""


class RoadmapInProgressError(StudyAssistantError):
    """A roadmap is already being generated"""
