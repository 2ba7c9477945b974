# locale-aware sort keys for topic lists
import unicodedata
from typing import Callable, Iterable, List

TURKISH_ALPHABET = "abcçdefgğhıijklmnoöprsştuüvyz"
_TURKISH_RANK = {ch: i for i, ch in enumerate(TURKISH_ALPHABET)}
_UNRANKED = len(TURKISH_ALPHABET)

# character classes, ordered the way collation tables order them
_SPACE_OR_PUNCT, _DIGIT, _LETTER, _OTHER = range(4)


def turkish_lower(text: str) -> str:
    """Lowercase with Turkish dotted/dotless i rules"""
    return text.replace("I", "ı").replace("İ", "i").lower()


def _strip_accents(ch: str) -> str:
    decomposed = unicodedata.normalize("NFKD", ch)
    return "".join(c for c in decomposed if not unicodedata.combining(c)) or ch


def _char_class(ch: str) -> int:
    if ch.isspace() or unicodedata.category(ch).startswith(("P", "S")):
        return _SPACE_OR_PUNCT
    if ch.isdigit():
        return _DIGIT
    if ch.isalpha():
        return _LETTER
    return _OTHER


def turkish_sort_key(text: str) -> tuple:
    """Alphabet order first, then accents, then lowercase-before-uppercase, then code points"""
    primary = []
    accents = []
    case = []
    for ch, low in zip(text, turkish_lower(text)):
        cls = _char_class(ch)
        if low in _TURKISH_RANK:
            primary.append((cls, _TURKISH_RANK[low], ""))
            accents.append("")
        else:
            # q, w, x and accented latin letters outside the alphabet
            base = _strip_accents(low)
            rank = _TURKISH_RANK.get(base[0], _UNRANKED)
            primary.append((cls, rank, base if rank == _UNRANKED else ""))
            accents.append("" if base == low else low)
        case.append(0 if ch == low else 1)
    return tuple(primary), tuple(accents), tuple(case), text


def generic_sort_key(text: str) -> tuple:
    """Accent- and case-insensitive primary key for languages without a custom table"""
    primary = []
    accents = []
    case = []
    for ch in text:
        base = _strip_accents(ch)
        primary.append((_char_class(ch), base.casefold()))
        accents.append("" if base == ch else ch.casefold())
        case.append(0 if ch == ch.lower() else 1)
    return tuple(primary), tuple(accents), tuple(case), text


def collation_key(language: str) -> Callable[[str], tuple]:
    if language.lower().startswith("tr"):
        return turkish_sort_key
    return generic_sort_key


def sort_topics(topics: Iterable[str], language: str = "tr") -> List[str]:
    """Sort topic strings for display in the given language"""
    return sorted(topics, key=collation_key(language))
