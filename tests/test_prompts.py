import pytest

from health_insights.profiling import TRUNCATION_MARKER
from health_insights.prompts import (
    ANSWER_MAX_TOKENS,
    AUTO_VISUALIZATION_MAX_TOKENS,
    SUMMARY_MAX_TOKENS,
    VISUALIZATION_MAX_TOKENS,
    InsufficientDataError,
    build_answer_prompt,
    build_auto_visualization_prompt,
    build_summary_prompt,
    build_visualization_prompt,
)


@pytest.mark.parametrize(
    "builder",
    [
        build_summary_prompt,
        lambda data: build_answer_prompt("How many?", data),
        lambda data: build_visualization_prompt("bar chart", data),
        build_auto_visualization_prompt,
    ],
)
@pytest.mark.parametrize("data", [[], {}, None])
def test_builders_reject_empty_data(builder, data) -> None:
    with pytest.raises(InsufficientDataError):
        builder(data)


def test_summary_prompt_includes_sample_statistics_and_health_hint(clinic_visits) -> None:
    context = build_summary_prompt(clinic_visits)
    text = context.render()
    assert context.max_output_tokens == SUMMARY_MAX_TOKENS
    assert "- Total number of records: 6" in text
    assert "This appears to be health data." in text
    assert '"district": "North"' in text
    assert text.endswith("SUMMARY:")


def test_summary_prompt_limits_records() -> None:
    data = [{"region": f"R{index}", "cases": index} for index in range(25)]
    text = build_summary_prompt(data).render()
    assert '"R9"' in text
    assert '"R10"' not in text
    assert "This appears to be health data." not in text


def test_answer_prompt_contains_question_and_caps_sample() -> None:
    data = [{"region": "x" * 300, "cases": index} for index in range(5)]
    context = build_answer_prompt("Which region has the most cases?", data)
    text = context.render()
    assert context.max_output_tokens == ANSWER_MAX_TOKENS
    assert "QUESTION:\nWhich region has the most cases?" in text
    assert TRUNCATION_MARKER in context.data_sample
    assert len(context.data_sample) <= 1500 + len(TRUNCATION_MARKER)
    assert "Use professional formatting" in text


def test_visualization_prompt_lists_at_most_three_fields() -> None:
    data = [{"a": "x", "b": "y", "c": "z", "d": "w", "n1": 1, "n2": 2, "n3": 3, "n4": 4}]
    context = build_visualization_prompt("compare n1", data)
    assert context.categorical_fields == ("a", "b", "c")
    assert context.numeric_fields == ("n1", "n2", "n3")
    assert context.max_output_tokens == VISUALIZATION_MAX_TOKENS
    text = context.render()
    assert "USER REQUEST:\ncompare n1" in text
    assert "DO NOT use ellipses" in text
    assert "Available categorical fields: a, b, c" in text


def test_auto_visualization_prompt(clinic_visits) -> None:
    context = build_auto_visualization_prompt(clinic_visits)
    text = context.render()
    assert context.max_output_tokens == AUTO_VISUALIZATION_MAX_TOKENS
    assert "suggest 5 different visualizations" in text
    assert "Available numeric fields: opd_visits, anc_visits" in text
    assert text.endswith("VISUALIZATIONS:")


def test_auto_visualization_prompt_needs_a_chartable_pair() -> None:
    with pytest.raises(InsufficientDataError):
        build_auto_visualization_prompt([{"cases": 1, "deaths": 0}])
    with pytest.raises(InsufficientDataError):
        build_auto_visualization_prompt({"cases": 1})


def test_visualization_prompt_includes_statistics(region_cases) -> None:
    text = build_visualization_prompt("cases by region", region_cases).render()
    assert "Here are some key statistics:\n- Total number of records: 3" in text
