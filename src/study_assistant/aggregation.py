# cross-document topic views derived from the tracked files
from typing import Iterable, List

from .collation import sort_topics
from .models import AnalysisResult, FileStatus, Priority, TopicIndex, TrackedFile


def completed_results(files: Iterable[TrackedFile]) -> List[AnalysisResult]:
    """Results of completed files, in collection order"""
    return [f.result for f in files if f.status == FileStatus.COMPLETED and f.result is not None]


def has_completed(files: Iterable[TrackedFile]) -> bool:
    return any(f.status == FileStatus.COMPLETED for f in files)


def build_topic_index(files: Iterable[TrackedFile], language: str = "tr") -> TopicIndex:
    """Union of topics and of HIGH-priority study items over completed files.

    Pure and deterministic: the same collection always gives the same
    sequences. Topics are matched by exact string.
    """
    all_topics = set()
    high_priority = set()
    for result in completed_results(files):
        all_topics.update(result.topics)
        high_priority.update(item.topic for item in result.study_plan if item.priority == Priority.HIGH)

    return TopicIndex(
        all_topics=sort_topics(all_topics, language),
        high_priority_topics=sort_topics(high_priority, language),
    )
