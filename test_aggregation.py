"""
tests for the cross-document topic index and topic collation
"""

from conftest import make_result
from study_assistant.aggregation import build_topic_index, completed_results, has_completed
from study_assistant.collation import sort_topics, turkish_lower
from study_assistant.models import FileStatus, TrackedFile


def tracked(file_id: str, status: FileStatus, result=None, error_message=None) -> TrackedFile:
    return TrackedFile(
        id=file_id,
        file_name=f"{file_id}.pdf",
        file_size=1024,
        file_type="application/pdf",
        status=status,
        result=result,
        error_message=error_message,
        timestamp=1700000000000,
    )


def test_single_completed_file():
    files = [tracked("a", FileStatus.COMPLETED, make_result(["B", "A"], high=["A"], medium=["B"]))]
    index = build_topic_index(files)
    assert index.all_topics == ["A", "B"]
    assert index.high_priority_topics == ["A"]


def test_failed_files_are_ignored():
    files = [
        tracked("ok", FileStatus.COMPLETED, make_result(["X"])),
        tracked("bad", FileStatus.ERROR, error_message="boom"),
        tracked("busy", FileStatus.ANALYZING),
    ]
    index = build_topic_index(files)
    assert index.all_topics == ["X"]
    assert index.high_priority_topics == []
    assert has_completed(files)
    assert len(completed_results(files)) == 1


def test_no_completed_files():
    files = [tracked("bad", FileStatus.ERROR, error_message="boom"), tracked("new", FileStatus.IDLE)]
    index = build_topic_index(files)
    assert index.all_topics == []
    assert index.high_priority_topics == []
    assert not has_completed(files)


def test_topics_are_deduplicated_by_exact_match():
    files = [
        tracked("a", FileStatus.COMPLETED, make_result(["Mitoz", "Mayoz", "Mitoz"], high=["Mitoz"])),
        tracked("b", FileStatus.COMPLETED, make_result(["Mitoz", "mitoz", "Mitoz "], high=["Mitoz"])),
    ]
    index = build_topic_index(files)
    assert index.all_topics.count("Mitoz") == 1
    assert "mitoz" in index.all_topics
    assert "Mitoz " in index.all_topics
    assert index.high_priority_topics == ["Mitoz"]


def test_recomputing_gives_identical_sequences():
    files = [
        tracked("a", FileStatus.COMPLETED, make_result(["Şekil", "Çember", "Ağaç", "Zaman"], high=["Şekil", "Ağaç"])),
        tracked("b", FileStatus.COMPLETED, make_result(["Işık", "İnsan", "Ucuz", "Öğrenci"], high=["Işık"])),
    ]
    assert build_topic_index(files) == build_topic_index(files)
    assert build_topic_index(files) == build_topic_index(list(reversed(files)))


def test_turkish_alphabet_order():
    topics = ["Zaman", "Çember", "Cebir", "Şekil", "Sayılar", "Öğrenci", "Orman", "Ünite", "Uzay", "Ağaç"]
    assert sort_topics(topics, "tr") == [
        "Ağaç", "Cebir", "Çember", "Orman", "Öğrenci", "Sayılar", "Şekil", "Uzay", "Ünite", "Zaman",
    ]


def test_turkish_dotted_and_dotless_i():
    assert turkish_lower("IŞIK") == "ışık"
    assert turkish_lower("İnsan") == "insan"
    # ı comes before i in the Turkish alphabet
    assert sort_topics(["İnsan", "Işık", "Hücre", "Jeoloji"], "tr") == ["Hücre", "Işık", "İnsan", "Jeoloji"]


def test_lowercase_sorts_before_uppercase_of_same_word():
    assert sort_topics(["Mitoz", "mitoz"], "tr") == ["mitoz", "Mitoz"]


def test_other_languages_ignore_case_and_accents_first():
    assert sort_topics(["b", "Á", "a", "C"], "en") == ["a", "Á", "b", "C"]
