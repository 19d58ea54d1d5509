"""Debate judges"""

import logging
from typing import Optional, Sequence

from llm_client import TextGenerator

from .config import DEFAULT_SCORE
from .prompts import create_judge_prompt
from .scoring import (
    extract_highlights,
    extract_overall_comment,
    extract_recommended_winner,
    extract_scores,
    weighted_total,
)
from .types import SIDES, CategoryReasons, CategoryScores, DebateMessage, Highlights, JudgeResult

logger = logging.getLogger(__name__)


def build_judge_result(name: str, content: str) -> JudgeResult:
    """Turn a judge's free-text answer into a scored result"""
    extraction = extract_scores(content)
    return JudgeResult(
        name=name,
        score={side: weighted_total(extraction.scores[side]) for side in SIDES},
        detailed_scores=extraction.scores,
        score_reasons=extraction.reasons,
        comment=content,
        overall_comment=extract_overall_comment(content),
        highlights=extract_highlights(content),
        recommended_winner=extract_recommended_winner(content),
        confidence=extraction.confidence,
    )


def default_judge_result(name: str, error: str) -> JudgeResult:
    """Neutral result used when a judge could not be consulted"""
    reason = f"Judge {name} could not score this debate ({error}); default of {DEFAULT_SCORE:g} applied."
    return JudgeResult(
        name=name,
        score={side: DEFAULT_SCORE for side in SIDES},
        detailed_scores={side: CategoryScores.uniform(DEFAULT_SCORE) for side in SIDES},
        score_reasons={side: CategoryReasons.uniform(reason) for side in SIDES},
        comment=f"Judge {name} ran into a technical problem; default scores were used.",
        overall_comment=reason,
        highlights=Highlights(
            pros=["Not evaluated for technical reasons"],
            cons=["Not evaluated for technical reasons"],
            suggestions=["Re-run the scoring"],
        ),
        recommended_winner=None,
        confidence=0.0,
        degraded=True,
    )


class Judge:
    """One member of the judging panel"""

    def __init__(self, name: str, client: TextGenerator):
        self.name = name
        self.client = client
        self.conversation_id: Optional[str] = None

    async def evaluate(
        self,
        topic: str,
        background: str,
        messages: Sequence[DebateMessage],
    ) -> JudgeResult:
        """Score the finished debate

        Never raises for a failed call or an unreadable answer; the panel
        always gets a usable result.
        """
        prompt = create_judge_prompt(self.name, topic, background, messages)
        logger.info(f"Judge {self.name} started scoring")

        try:
            response = await self.client.generate(prompt, "judge", self.conversation_id)
        except Exception as e:
            logger.error(f"Judge {self.name} failed, using default scores: {e}")
            return default_judge_result(self.name, str(e) or type(e).__name__)

        self.conversation_id = response.conversation_id or self.conversation_id
        result = build_judge_result(self.name, response.text)
        logger.info(
            f"Judge {self.name} scored pro {result.score['pro']:.1f}, "
            f"con {result.score['con']:.1f} (confidence {result.confidence:.2f})"
        )
        return result
