import re
from typing import List, Set

# Any run of characters that is not a letter or digit (underscore included).
_NON_WORD = re.compile(r"[\W_]+")


def normalize(text: str) -> str:
    """Lower-case text and collapse every non-alphanumeric run into one space."""
    if not text:
        return ""
    return _NON_WORD.sub(" ", text.lower()).strip()


def normalize_skill(skill: str) -> str:
    return normalize(skill)


def tokens_list(normalized: str) -> List[str]:
    if not normalized:
        return []
    return normalized.split(" ")


def tokens(normalized: str) -> Set[str]:
    return {t for t in tokens_list(normalized) if t}


def contains_phrase(haystack: str, needle: str) -> bool:
    """Whole-word containment of an already normalized phrase.

    "rest api" is found in "rest api design" but "rest" is not found in
    "restful api".
    """
    if not needle:
        return False
    return f" {needle} " in f" {haystack} "
