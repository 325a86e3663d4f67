"""
Skill alias expansion used by the matcher.

Every alias group lists spellings that are considered the same skill. Entries
are normalized on load, so "ci/cd" and "ci cd" end up identical.
"""
from itertools import islice, product
from typing import Dict, FrozenSet, List, Set

from screening.helpers.text import normalize_skill, tokens_list

SKILL_ALIASES: List[List[str]] = [
    ["postgres", "postgresql"],
    ["k8s", "kubernetes"],
    ["go", "golang"],
    ["js", "javascript"],
    ["ts", "typescript"],
    ["rest", "rest api"],
    ["cicd", "ci cd", "ci/cd"],
    ["nodejs", "node js", "node.js"],
    ["reactjs", "react js", "react.js", "react"],
    ["aws", "amazon web services"],
    ["gcp", "google cloud", "google cloud platform"],
    ["azure", "microsoft azure"],
    ["ml", "machine learning"],
]


def _build_alias_index(groups: List[List[str]]) -> Dict[str, FrozenSet[str]]:
    index: Dict[str, FrozenSet[str]] = {}
    for group in groups:
        members = frozenset(n for n in (normalize_skill(g) for g in group) if n)
        for member in members:
            index[member] = members
    return index


_ALIAS_INDEX = _build_alias_index(SKILL_ALIASES)
_ALIAS_GROUPS = sorted({g for g in _ALIAS_INDEX.values()}, key=sorted)

# upper bound on token-level combinations produced for one phrase
MAX_REJOINS = 64


def token_variants(token: str) -> Set[str]:
    """Single-token aliases of a token, including the token itself."""
    t = normalize_skill(token)
    if not t:
        return set()
    group = _ALIAS_INDEX.get(t, frozenset())
    return {t} | {m for m in group if " " not in m}


def token_rejoins(skill: str) -> Set[str]:
    """Every token swapped for its single-token aliases and joined back.

    The result keeps the token count of the phrase: "go developer" gives
    {"go developer", "golang developer"}.
    """
    parts = tokens_list(normalize_skill(skill))
    if not parts:
        return set()
    options = [sorted(token_variants(p)) for p in parts]
    return {" ".join(combo) for combo in islice(product(*options), MAX_REJOINS)}


def _longest_occurrence(phrase: str, group: FrozenSet[str]) -> str:
    padded = f" {phrase} "
    found = [m for m in group if f" {m} " in padded]
    return max(found, key=len) if found else ""


def _substitute(phrase: str, old: str, new: str) -> str:
    padded = f" {phrase} ".replace(f" {old} ", f" {new} ")
    return padded.strip()


def variants(skill: str) -> Set[str]:
    """Normalized spellings of a skill phrase considered equivalent for matching.

    The phrase itself and its whole-phrase aliases are always present. For
    multi-word phrases the token-level rejoins are added, and each aliased
    sub-phrase is also swapped for its alternatives, so "ci cd pipelines"
    yields "cicd pipelines". Sub-phrase swaps can change the token count, so
    partial token overlap is computed over token_rejoins() only.
    """
    base = normalize_skill(skill)
    if not base:
        return set()

    out = {base}
    out.update(_ALIAS_INDEX.get(base, frozenset()))

    if len(tokens_list(base)) > 1:
        out.update(token_rejoins(base))
        expanded = {base}
        for group in _ALIAS_GROUPS:
            for phrase in list(expanded):
                old = _longest_occurrence(phrase, group)
                if not old or old == phrase:
                    continue
                for new in group:
                    if new != old:
                        expanded.add(_substitute(phrase, old, new))
        out.update(expanded)

    return out
