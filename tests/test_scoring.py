"""Score extraction and aggregation"""

import pytest

from debate_core.judge import build_judge_result, default_judge_result
from debate_core.scoring import (
    DEFAULT_HIGHLIGHTS,
    aggregate,
    decide_winner,
    extract_highlights,
    extract_overall_comment,
    extract_recommended_winner,
    extract_scores,
    trimmed_mean,
    weighted_total,
)
from debate_core.types import CategoryScores, FinalScores

from conftest import JUDGE_TEXT


def test_trimmed_mean_drops_one_highest_and_one_lowest():
    assert trimmed_mean([40, 60, 70, 80, 90, 100]) == 75.0


def test_trimmed_mean_order_does_not_matter():
    assert trimmed_mean([100, 40, 90, 60, 80, 70]) == 75.0


def test_trimmed_mean_drops_only_one_of_duplicates():
    assert trimmed_mean([50, 50, 80, 80, 80, 80]) == pytest.approx(72.5)


def test_trimmed_mean_needs_three_values():
    with pytest.raises(ValueError):
        trimmed_mean([1, 2])


def test_weighted_total_uses_fixed_weights():
    scores = CategoryScores(logic=80, evidence=70, rebuttal=60, expression=90)
    assert weighted_total(scores) == pytest.approx(75.0)


def test_extract_scores_reads_both_sides():
    extraction = extract_scores(JUDGE_TEXT)

    assert extraction.confidence == 1.0
    assert extraction.scores["pro"] == CategoryScores(logic=80, evidence=70, rebuttal=60, expression=90)
    assert extraction.scores["con"] == CategoryScores.uniform(70)
    assert extraction.reasons["pro"].logic == "clear structure"
    assert extraction.reasons["pro"].rebuttal == "missed the key point"


def test_extract_scores_ignores_numbers_inside_rationale():
    text = """PRO SCORES:
Logic: 82 - strong evidence: 3 cases cited
Evidence: 64
Rebuttal: 71
Expression: 77
CON SCORES:
Logic: 60
Evidence: 61
Rebuttal: 62
Expression: 63
"""
    extraction = extract_scores(text)
    assert extraction.scores["pro"].logic == 82
    assert extraction.scores["pro"].evidence == 64


def test_extract_scores_accepts_chinese_labels():
    text = """正方评分：
论点逻辑性：85
论据相关性：80
反驳有效性：75
表达说服力：70

反方评分：
论点逻辑性：65
论据相关性：60
反驳有效性：55
表达说服力：50
"""
    extraction = extract_scores(text)
    assert extraction.confidence == 1.0
    assert extraction.scores["pro"] == CategoryScores(logic=85, evidence=80, rebuttal=75, expression=70)
    assert extraction.scores["con"] == CategoryScores(logic=65, evidence=60, rebuttal=55, expression=50)


def test_extract_scores_inline_side_labels():
    text = """Pro logic: 90. Pro evidence: 85. Pro rebuttal: 80. Pro expression: 75.
Con logic: 60. Con evidence: 65. Con rebuttal: 70. Con expression: 55."""
    extraction = extract_scores(text)
    assert extraction.confidence == 1.0
    assert extraction.scores["pro"].logic == 90
    assert extraction.scores["con"].expression == 55


def test_out_of_range_score_falls_back_to_default():
    text = JUDGE_TEXT.replace("Logic: 80", "Logic: 180")
    extraction = extract_scores(text)
    assert extraction.scores["pro"].logic == 75.0
    assert extraction.confidence == pytest.approx(7 / 8)


def test_unreadable_text_gives_defaults():
    extraction = extract_scores("What a lovely debate, both sides were great!")
    assert extraction.confidence == 0.0
    assert extraction.scores["pro"] == CategoryScores.uniform(75.0)
    assert extraction.scores["con"] == CategoryScores.uniform(75.0)


def test_low_confidence_discards_partial_scores():
    text = "PRO SCORES:\nLogic: 10\nCON SCORES:\nLogic: 95\n"
    extraction = extract_scores(text)
    assert extraction.confidence == pytest.approx(2 / 8)
    assert extraction.scores["pro"].logic == 75.0
    assert extraction.scores["con"].logic == 75.0


@pytest.mark.parametrize("text", ["", "\n\n", "PRO SCORES:", "Logic: abc"])
def test_extract_scores_never_raises(text):
    assert extract_scores(text).scores["pro"] == CategoryScores.uniform(75.0)


def test_extract_highlights():
    highlights = extract_highlights(JUDGE_TEXT)
    assert highlights.pros == ["Pro opened strongly", "Con stayed focused"]
    assert highlights.cons == ["Few statistics on either side"]
    assert highlights.suggestions == ["Cite concrete sources"]


def test_extract_highlights_defaults():
    assert extract_highlights("nothing structured here") == DEFAULT_HIGHLIGHTS


def test_extract_overall_comment():
    assert extract_overall_comment(JUDGE_TEXT) == "A close debate decided by structure."
    assert extract_overall_comment("  just prose  ") == "just prose"


def test_extract_recommended_winner():
    winner = extract_recommended_winner(JUDGE_TEXT)
    assert winner.side == "pro"
    assert winner.reason == "better structure"
    assert extract_recommended_winner("The winner is Con.").side == "con"
    assert extract_recommended_winner("no verdict") is None


def test_build_judge_result_computes_weighted_totals():
    result = build_judge_result("Judge A", JUDGE_TEXT)
    assert result.score["pro"] == pytest.approx(75.0)
    assert result.score["con"] == pytest.approx(70.0)
    assert result.comment == JUDGE_TEXT
    assert not result.degraded


def _judge(pro_total: float, con_total: float, pro_logic: float = 75.0):
    result = default_judge_result("J", "test")
    result.score["pro"] = pro_total
    result.score["con"] = con_total
    result.detailed_scores["pro"].logic = pro_logic
    return result


def test_aggregate_trims_totals_and_categories_independently():
    judges = [
        _judge(pro, 70, pro_logic=logic)
        for pro, logic in zip([40, 60, 70, 80, 90, 100], [10, 20, 30, 40, 50, 60])
    ]
    final = aggregate(judges)

    assert final.pro == 75.0
    assert final.con == 70.0
    assert final.details["pro"].logic == 35.0
    assert final.details["pro"].evidence == 75.0
    assert final.eliminated_scores["pro"] == {"highest": 100, "lowest": 40}


def test_decide_winner():
    details = {"pro": CategoryScores.uniform(0), "con": CategoryScores.uniform(0)}
    eliminated = {"pro": {"highest": 0, "lowest": 0}, "con": {"highest": 0, "lowest": 0}}
    assert decide_winner(FinalScores(80, 70, details, eliminated)) == "pro"
    assert decide_winner(FinalScores(70, 80, details, eliminated)) == "con"
    assert decide_winner(FinalScores(75, 75, details, eliminated)) is None
