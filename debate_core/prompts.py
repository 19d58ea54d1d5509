"""Prompt generation for debaters and judges"""

from typing import Sequence

from .types import DebateMessage, Side, round_for_index

SIDE_LABELS = {"pro": "Pro", "con": "Con"}


def format_transcript(messages: Sequence[DebateMessage]) -> str:
    """Render the debate so far, one labelled turn per paragraph"""
    return "\n\n".join(
        f"Round {round_for_index(i)} {SIDE_LABELS[msg.side]}: {msg.message}"
        for i, msg in enumerate(messages)
    )


def create_debater_prompt(
    side: Side,
    topic: str,
    background: str,
    messages: Sequence[DebateMessage],
) -> str:
    """Create the full prompt for a debater's next turn

    Args:
        side: "pro" argues for the motion, "con" against it
        topic: The debate motion
        background: Extra context supplied when the debate was created
        messages: Transcript so far

    Returns:
        Prompt string
    """
    stance = "support and argue for" if side == "pro" else "oppose and refute"
    role = "the Pro (affirmative)" if side == "pro" else "the Con (negative)"

    prompt = f"""You are {role} debater. You must {stance} the following motion: {topic}

Rules:
1. Keep your reasoning clear and your claims explicit
2. Back every claim with concrete evidence or examples
3. Rebut your opponent's latest points directly
4. Be concise: at most 200 words per reply
5. Stay professional and courteous
6. Use rhetorical questions and analogies where they help
7. Sound confident and persuasive"""

    if background.strip():
        prompt += f"\n\nBackground:\n{background.strip()}"

    history = format_transcript(messages)
    if history:
        prompt += f"\n\nDebate so far:\n{history}\n\nContinue with your next turn:"
    else:
        prompt += "\n\nYou speak first. Give your opening statement:"
    return prompt


def create_judge_prompt(
    judge_name: str,
    topic: str,
    background: str,
    messages: Sequence[DebateMessage],
) -> str:
    """Create the scoring prompt for one judge

    The requested layout is what debate_core.scoring knows how to read back.

    Args:
        judge_name: Display name of the judge
        topic: The debate motion
        background: Extra context supplied when the debate was created
        messages: Complete transcript

    Returns:
        Prompt string
    """
    context = f"\nBackground: {background.strip()}\n" if background.strip() else ""
    return f"""You are {judge_name}, a judge at a debate tournament. Score the debate below fairly and objectively, and justify every score.

Motion: {topic}
{context}
Transcript:
{format_transcript(messages)}

Score each side from 0 to 100 on four criteria:

1. Logic (weight 30%): rigour of the reasoning, clarity of the claims, overall structure
2. Evidence (weight 30%): sufficiency, reliability and relevance of the support
3. Rebuttal (weight 20%): understanding of the opponent, precision and force of the rebuttals
4. Expression (weight 20%): accuracy of language, coherence, persuasive power

Answer in exactly this format, one score per line, each followed by a one-sentence reason:

PRO SCORES:
Logic: [score] - [reason]
Evidence: [score] - [reason]
Rebuttal: [score] - [reason]
Expression: [score] - [reason]

CON SCORES:
Logic: [score] - [reason]
Evidence: [score] - [reason]
Rebuttal: [score] - [reason]
Expression: [score] - [reason]

STRENGTHS:
[3-5 main strengths, one per line]

WEAKNESSES:
[3-5 main weaknesses, one per line]

SUGGESTIONS:
[3-5 concrete suggestions, one per line]

OVERALL:
[A short overall assessment]

WINNER: [Pro or Con] - [reason]"""
