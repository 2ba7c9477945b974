# pydantic models for data validation and structure
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# fixed user-facing messages (stored with the files, so they stay in the product language)
RELOAD_INTERRUPTED_MESSAGE = "Sayfa yenilendiği için işlem tamamlanamadı."
MISSING_PAYLOAD_MESSAGE = "Dosya verisi bulunamadı."
UNKNOWN_ERROR_MESSAGE = "Bilinmeyen bir hata oluştu"
EMPTY_RESPONSE_MESSAGE = "API boş yanıt döndürdü."
ROADMAP_FAILED_MESSAGE = "Yol haritası oluşturulurken bir hata oluştu. Lütfen tekrar deneyin."
CLEAR_CONFIRMATION_PROMPT = "Tüm kayıtlı analizler ve yol haritası silinsin mi?"


# base model: camelCase on the wire and in storage, snake_case in python
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# processing state of one uploaded file
class FileStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.COMPLETED, FileStatus.ERROR)


# study priority; values are the labels the model is asked to return
class Priority(str, Enum):
    HIGH = "Yüksek"
    MEDIUM = "Orta"
    LOW = "Düşük"


# one row of a study plan
class StudyItem(CamelModel):
    topic: str
    action: str
    priority: Priority


# output of a successful document analysis
class AnalysisResult(CamelModel):
    summary: str
    topics: List[str]  # remote order, duplicates kept
    study_plan: List[StudyItem]


# one phase of the cross-document curriculum
class RoadmapStep(CamelModel):
    step_name: str
    title: str
    description: str
    topics: List[str]


# a file as handed over by the user, before tracking starts
class RawFile(BaseModel):
    name: str
    content_type: str = "application/pdf"
    data: Optional[bytes] = None
    size: Optional[int] = None

    @model_validator(mode="after")
    def _fill_size(self) -> "RawFile":
        if self.size is None:
            self.size = len(self.data) if self.data is not None else 0
        return self


# one uploaded document and its processing state
class TrackedFile(CamelModel):
    id: str
    file_name: str
    file_size: int
    file_type: str
    status: FileStatus = FileStatus.IDLE
    result: Optional[AnalysisResult] = None
    error_message: Optional[str] = None
    timestamp: int  # creation time, epoch milliseconds
    # session-only bytes, never serialized
    raw_payload: Optional[bytes] = Field(default=None, exclude=True, repr=False)

    @model_validator(mode="after")
    def _check_outcome(self) -> "TrackedFile":
        """Keep result/errorMessage consistent with the status"""
        if (self.status == FileStatus.COMPLETED) != (self.result is not None):
            raise ValueError("result must be set exactly when status is 'completed'")
        if (self.status == FileStatus.ERROR) != (self.error_message is not None):
            raise ValueError("errorMessage must be set exactly when status is 'error'")
        return self

    def with_status(
        self,
        status: FileStatus,
        result: Optional[AnalysisResult] = None,
        error_message: Optional[str] = None,
    ) -> "TrackedFile":
        """Return a copy with a new status and outcome, keeping the payload"""
        data = self.model_dump()
        data.update(status=status, result=result, error_message=error_message)
        return TrackedFile(**data, raw_payload=self.raw_payload)

    def to_storage(self) -> dict:
        """Serialize for the durable store (payload stripped)"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# derived cross-document topic views
class TopicIndex(CamelModel):
    all_topics: List[str] = []
    high_priority_topics: List[str] = []


# response model for GET /topics
class TopicIndexResponse(TopicIndex):
    can_generate_roadmap: bool = False


# response model for roadmap endpoints
class RoadmapResponse(CamelModel):
    generated: bool
    steps: List[RoadmapStep] = []
    message: str = ""
