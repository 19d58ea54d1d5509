"""Score extraction and panel aggregation

Judges answer in free text. Everything here turns that text into numbers and
never raises: anything that cannot be read falls back to DEFAULT_SCORE, and a
response where too few scores could be read is discarded wholesale.

Aggregation drops the single highest and single lowest value of each metric
and averages the rest. Category totals and overall totals are trimmed
independently from the judges' own values.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import CATEGORY_WEIGHTS, DEFAULT_SCORE, MIN_SCORE_CONFIDENCE, SCORE_CATEGORIES
from .types import (
    SIDES,
    CategoryReasons,
    CategoryScores,
    FinalScores,
    Highlights,
    JudgeResult,
    RecommendedWinner,
    Side,
)

logger = logging.getLogger(__name__)

SIDE_LABELS = {
    "pro": r"pro|proposition|affirmative|正方",
    "con": r"con|opposition|negative|反方",
}

CATEGORY_LABELS = {
    "logic": r"logic(?:al)?|reasoning|论点|逻辑",
    "evidence": r"evidence|论据|证据",
    "rebuttal": r"rebuttals?|refutation|反驳|回应",
    "expression": r"expression|delivery|表达|表现",
}

SECTION_LABELS = {
    "strengths": r"strengths?|pros|highlights|优点|亮点",
    "weaknesses": r"weakness(?:es)?|cons|shortcomings|缺点|不足",
    "suggestions": r"suggestions?|improvements?|建议|改进",
    "overall": r"overall(?:\s+comments?)?|summary|总结|总评",
    "reasons": r"score\s+reasons?|reasons?|评分理由",
    "winner": r"winner|胜方|获胜方",
}

NUMBER = r"(\d{1,3}(?:\.\d+)?)(?!\d|\.\d)"
DECORATION = "#*_>`•- \t"

MISSING_SCORE_REASON = f"No score found in the judge's response; default of {DEFAULT_SCORE:g} applied."
LOW_CONFIDENCE_REASON = f"The judge's response could not be read reliably; default of {DEFAULT_SCORE:g} applied."
NO_REASON = "No rationale given."

DEFAULT_HIGHLIGHTS = Highlights(
    pros=["Solid overall performance"],
    cons=["Room for improvement"],
    suggestions=["Keep working on it"],
)

_SIDE_HEADER = {
    side: re.compile(rf"^(?:{labels})(?:\s+side)?(?:\s*(?:scores?|评分))?\s*[:：]?\s*$", re.I)
    for side, labels in SIDE_LABELS.items()
}
_SECTION_HEADER = {
    kind: re.compile(rf"^(?:{labels})\s*(?:[:：]\s*(.*)|$)", re.I)
    for kind, labels in SECTION_LABELS.items()
}
_CATEGORY_LINE = {
    category: re.compile(
        rf"^(?:\d+[.)、]\s*)?(?:{labels})[^:：\n]*?[:：]\s*{NUMBER}(?:\s*/\s*100)?\s*(.*)", re.I
    )
    for category, labels in CATEGORY_LABELS.items()
}
_INLINE_SCORE = {
    (side, category): re.compile(
        rf"(?:{SIDE_LABELS[side]})(?![a-z])[^\n]*?(?:{CATEGORY_LABELS[category]})[^:：\n]*?[:：]\s*{NUMBER}",
        re.I,
    )
    for side in SIDES
    for category in SCORE_CATEGORIES
}
_WINNER = re.compile(
    rf"(?:{SECTION_LABELS['winner']})\s*(?:is)?\s*[:：]?\s*\**\s*({SIDE_LABELS['pro']}|{SIDE_LABELS['con']})(?![a-z])\**\s*(.*)",
    re.I,
)


@dataclass
class ScoreExtraction:
    """Scores and rationale read from one judge response"""
    scores: dict[str, CategoryScores]
    reasons: dict[str, CategoryReasons]
    confidence: float


def _clean(line: str) -> str:
    return line.strip().strip(DECORATION).strip()


def split_sections(text: str) -> dict[str, list[str]]:
    """Group the lines of a response under the header they follow

    Lines before the first recognised header are kept under "preamble".
    Inline header content ("Strengths: clear structure") counts as the first
    line of its section.
    """
    sections: dict[str, list[str]] = {"preamble": []}
    current = "preamble"

    for raw in text.splitlines():
        line = _clean(raw)
        if not line:
            continue

        header = None
        for side, pattern in _SIDE_HEADER.items():
            if pattern.match(line):
                header = (side, "")
                break
        if header is None:
            for kind, pattern in _SECTION_HEADER.items():
                match = pattern.match(line)
                if match:
                    header = (kind, (match.group(1) or "").strip())
                    break

        if header is None:
            sections[current].append(line)
            continue

        current, inline = header
        sections.setdefault(current, [])
        if inline:
            sections[current].append(inline)

    return sections


def _parse_score(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if value < 0 or value > 100:
        return None
    return value


def _clean_reason(raw: str) -> str:
    reason = raw.strip().lstrip("-–—:：,，.。 ").strip()
    if reason.lower().startswith(("points", "pts", "分")):
        reason = reason.split(None, 1)[1] if " " in reason else ""
        reason = reason.lstrip("-–—:：,，.。 ").strip()
    return reason


def extract_scores(text: str) -> ScoreExtraction:
    """Read the eight category scores out of a judge response

    Never raises. Each score outside [0, 100] or missing falls back to
    DEFAULT_SCORE. Confidence is the share of scores actually found; below
    MIN_SCORE_CONFIDENCE every score is reset to the default.
    """
    sections = split_sections(text or "")
    found = 0
    values: dict[str, dict[str, float]] = {side: {} for side in SIDES}
    reasons: dict[str, dict[str, str]] = {side: {} for side in SIDES}

    for side in SIDES:
        lines = sections.get(side, [])
        for category in SCORE_CATEGORIES:
            score = None
            reason = ""
            for line in lines:
                match = _CATEGORY_LINE[category].match(line)
                if match:
                    score = _parse_score(match.group(1))
                    reason = _clean_reason(match.group(2))
                    break

            if score is None and not lines:
                match = _INLINE_SCORE[(side, category)].search(text or "")
                if match:
                    score = _parse_score(match.group(1))

            if score is None:
                logger.debug(f"No usable {side} {category} score, using default {DEFAULT_SCORE}")
                values[side][category] = DEFAULT_SCORE
                reasons[side][category] = MISSING_SCORE_REASON
            else:
                found += 1
                values[side][category] = score
                reasons[side][category] = reason or NO_REASON

    confidence = found / (len(SIDES) * len(SCORE_CATEGORIES))
    if confidence < MIN_SCORE_CONFIDENCE:
        if found:
            logger.warning(
                f"Only {found} scores found (confidence {confidence:.2f}), using defaults"
            )
        return ScoreExtraction(
            scores={side: CategoryScores.uniform(DEFAULT_SCORE) for side in SIDES},
            reasons={side: CategoryReasons.uniform(LOW_CONFIDENCE_REASON) for side in SIDES},
            confidence=confidence,
        )

    return ScoreExtraction(
        scores={side: CategoryScores(**values[side]) for side in SIDES},
        reasons={side: CategoryReasons(**reasons[side]) for side in SIDES},
        confidence=confidence,
    )


def _split_items(lines: list[str]) -> list[str]:
    if len(lines) == 1:
        lines = re.split(r"[;；。]", lines[0])
    items = []
    for line in lines:
        item = re.sub(r"^(?:\d+[.)、]|[-*•])\s*", "", line.strip()).strip()
        if 0 < len(item) < 200:
            items.append(item)
    return items


def extract_highlights(text: str) -> Highlights:
    """Pull strengths, weaknesses and suggestions, with a default for each"""
    sections = split_sections(text or "")
    return Highlights(
        pros=_split_items(sections.get("strengths", [])) or list(DEFAULT_HIGHLIGHTS.pros),
        cons=_split_items(sections.get("weaknesses", [])) or list(DEFAULT_HIGHLIGHTS.cons),
        suggestions=_split_items(sections.get("suggestions", [])) or list(DEFAULT_HIGHLIGHTS.suggestions),
    )


def extract_overall_comment(text: str) -> str:
    """The OVERALL section, or the whole response when there is none"""
    lines = split_sections(text or "").get("overall", [])
    if lines:
        return "\n".join(lines)
    return (text or "").strip()


def extract_recommended_winner(text: str) -> Optional[RecommendedWinner]:
    """The side the judge recommends, if it names one"""
    for raw in (text or "").splitlines():
        match = _WINNER.search(_clean(raw))
        if not match:
            continue
        label = match.group(1).lower()
        side: Side = "pro" if re.fullmatch(SIDE_LABELS["pro"], label, re.I) else "con"
        return RecommendedWinner(side=side, reason=_clean_reason(match.group(2)))
    return None


def weighted_total(scores: CategoryScores) -> float:
    """Composite score of one side with the fixed category weights"""
    return sum(scores.get(c) * CATEGORY_WEIGHTS[c] for c in SCORE_CATEGORIES)


def trimmed_mean(values: Sequence[float]) -> float:
    """Average after dropping the single highest and single lowest value

    Raises:
        ValueError: With fewer than three values nothing would remain
    """
    if len(values) < 3:
        raise ValueError(f"Need at least 3 values for a trimmed mean, got {len(values)}")
    kept = sorted(values)[1:-1]
    return sum(kept) / len(kept)


def aggregate(judges: Sequence[JudgeResult]) -> FinalScores:
    """Combine the panel's verdicts into final scores"""
    details = {
        side: CategoryScores(**{
            category: trimmed_mean([j.detailed_scores[side].get(category) for j in judges])
            for category in SCORE_CATEGORIES
        })
        for side in SIDES
    }
    totals = {side: [j.score[side] for j in judges] for side in SIDES}
    return FinalScores(
        pro=trimmed_mean(totals["pro"]),
        con=trimmed_mean(totals["con"]),
        details=details,
        eliminated_scores={
            side: {"highest": max(totals[side]), "lowest": min(totals[side])}
            for side in SIDES
        },
    )


def decide_winner(final: FinalScores) -> Optional[Side]:
    """Strictly higher trimmed total wins; equal totals are a tie (None)"""
    if final.pro > final.con:
        return "pro"
    if final.con > final.pro:
        return "con"
    return None
