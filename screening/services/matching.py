from typing import List, Sequence, Set

from screening.helpers.skills import token_rejoins, token_variants, variants
from screening.helpers.text import contains_phrase, normalize, normalize_skill, tokens_list
from screening.models.models import MatchResult, ResumeProfile, SkillRequirement, collapse_requirements

# Credit awarded per tier; a requirement counts as matched at or above PARTIAL.
EXACT_SCORE = 1.0
CORPUS_SCORE = 0.8
PARTIAL_SCORE = 0.6
PARTIAL_MIN_OVERLAP = 0.6


def candidate_skill_variants(profile: ResumeProfile) -> Set[str]:
    out: Set[str] = set()
    for skill in profile.skills:
        out |= variants(skill)
    return out


def candidate_tokens(skill_variants: Set[str]) -> Set[str]:
    out: Set[str] = set()
    for v in skill_variants:
        for tok in tokens_list(v):
            out |= token_variants(tok)
    return out


def profile_corpus(profile: ResumeProfile) -> str:
    """Normalized free text of summary, experience and education."""
    parts = [profile.summary]
    for e in profile.experience:
        parts.extend([e.company, e.role, e.description])
    for ed in profile.education:
        parts.extend([ed.institution, ed.degree])
    return normalize(" ".join(p for p in parts if p))


def best_token_overlap(req_rejoins: Set[str], cand_tokens: Set[str]) -> float:
    best = 0.0
    for v in req_rejoins:
        toks = tokens_list(v)
        if len(toks) < 2:
            continue
        hit = sum(1 for t in toks if t in cand_tokens)
        best = max(best, hit / len(toks))
    return best


def tier_score(
    skill: str,
    cand_variants: Set[str],
    cand_tokens: Set[str],
    corpus: str,
) -> float:
    req_variants = variants(skill)
    if not req_variants:
        return 0.0
    if req_variants & cand_variants:
        return EXACT_SCORE
    if any(contains_phrase(corpus, v) for v in req_variants):
        return CORPUS_SCORE
    # partial overlap only for multi-word requirements, over same-length rejoins
    if len(tokens_list(normalize_skill(skill))) > 1:
        if best_token_overlap(token_rejoins(skill), cand_tokens) >= PARTIAL_MIN_OVERLAP:
            return PARTIAL_SCORE
    return 0.0


def match(requirements: Sequence[SkillRequirement], profile: ResumeProfile) -> MatchResult:
    """Weighted skill fit of a profile against vacancy requirements.

    Each requirement earns 1.0 for an exact or alias hit among the candidate's
    skills, 0.8 when the phrase appears in the profile text, 0.6 when a
    multi-word skill shares at least 60% of its tokens with the candidate's
    skills, 0 otherwise. The score is the weight-averaged credit.
    """
    cand_variants = candidate_skill_variants(profile)
    cand_tokens = candidate_tokens(cand_variants)
    corpus = profile_corpus(profile)

    matched: List[str] = []
    missing: List[str] = []
    total_weight = 0.0
    earned_weight = 0.0

    for req in collapse_requirements(requirements):
        if not req.skill.strip():
            continue
        weight = max(0.0, req.weight)
        total_weight += weight

        credit = tier_score(req.skill, cand_variants, cand_tokens, corpus)
        earned_weight += weight * credit
        if credit >= PARTIAL_SCORE:
            matched.append(req.skill)
        else:
            missing.append(req.skill)

    score = earned_weight / total_weight if total_weight > 0 else 0.0
    return MatchResult(
        matched_skills=matched,
        missing_skills=missing,
        score=min(1.0, max(0.0, score)),
    )
