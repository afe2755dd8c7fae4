from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from health_insights.profiling import (
    classify_fields,
    data_statistics,
    detect_health_data,
    serialize_sample,
    truncate_sample,
)

MAX_PROMPT_FIELDS = 3

SUMMARY_MAX_TOKENS = 500
ANSWER_MAX_TOKENS = 600
VISUALIZATION_MAX_TOKENS = 800
AUTO_VISUALIZATION_MAX_TOKENS = 2000

_VISUALIZATION_SCHEMA_TEXT = """{
  "type": "bar" | "line" | "pie" | "donut",
  "title": "Title of the visualization",
  "description": "Brief description of what the visualization shows",
  "data": {
    "labels": ["Label1", "Label2", "Label3"],
    "values": [value1, value2, value3],
    "datasetLabel": "Optional label for the dataset"
  }
}"""

_JSON_RULES = (
    "DO NOT use ellipses (...) in the JSON - include only complete arrays with actual values",
    "DO NOT use placeholders - use real data from the sample",
    "Limit to 5-7 data points maximum for readability",
    "Include ONLY valid JSON - no comments, no explanations",
    "Make sure all JSON syntax is correct and all quotes are properly escaped",
)

_ANSWER_RULES = (
    "Key metrics with exact numbers (percentages, averages, ranges, etc.)",
    "Statistical findings (correlations, distributions, outliers)",
    "Numerical comparisons between different categories or groups",
    "Trends and patterns expressed with specific values",
    "Quantitative conclusions with supporting numbers",
)


class InsufficientDataError(ValueError):
    """The data sample cannot support the requested prompt."""


@dataclass(frozen=True)
class PromptContext:
    kind: str
    role: str
    data_sample: str
    max_output_tokens: int
    instructions: str = ""
    output_format: str = ""
    rules: tuple[str, ...] = ()
    statistics: str = ""
    domain_hint: str = ""
    numeric_fields: tuple[str, ...] = ()
    categorical_fields: tuple[str, ...] = ()
    request_label: str = ""
    request: str = ""
    closing: str = ""

    def render(self) -> str:
        sections = [self.role]
        if self.instructions:
            sections.append(self.instructions)
        if self.output_format:
            sections.append(self.output_format)
        if self.rules:
            numbered = "\n".join(f"{index}. {rule}" for index, rule in enumerate(self.rules, start=1))
            sections.append(f"IMPORTANT RULES:\n{numbered}")
        if self.statistics:
            sections.append(
                "This is a sample of the full dataset. Here are some key statistics:\n" + self.statistics
            )
        if self.categorical_fields:
            sections.append(f"Available categorical fields: {', '.join(self.categorical_fields)}")
        if self.numeric_fields:
            sections.append(f"Available numeric fields: {', '.join(self.numeric_fields)}")
        if self.domain_hint:
            sections.append(self.domain_hint)
        sections.append(f"DATA SAMPLE:\n{self.data_sample}")
        if self.request_label:
            sections.append(f"{self.request_label}:\n{self.request}")
        if self.closing:
            sections.append(self.closing)
        return "\n\n".join(sections)


def _is_empty(data: Any) -> bool:
    return data is None or (isinstance(data, (list, dict)) and len(data) == 0)


def build_summary_prompt(data: Any) -> PromptContext:
    if _is_empty(data):
        raise InsufficientDataError("No data to summarize.")
    hint = ""
    if detect_health_data(data):
        hint = (
            "This appears to be health data. When analyzing, consider health indicators, trends, and "
            "potential public health implications. Focus on identifying patterns that might be relevant "
            "for health policy or intervention planning."
        )
    sample = truncate_sample(data, max_records=10, max_keys=20, max_string_length=500, max_list_items=5)
    return PromptContext(
        kind="summary",
        role=(
            "You are a data analyst assistant specializing in health data. Analyze the following data "
            "sample and provide a concise summary."
        ),
        instructions="Focus on key insights, patterns, and notable statistics. Keep your response under 300 words.",
        statistics=data_statistics(data, detailed=False),
        domain_hint=hint,
        data_sample=serialize_sample(sample),
        closing="SUMMARY:",
        max_output_tokens=SUMMARY_MAX_TOKENS,
    )


def build_answer_prompt(question: str, data: Any) -> PromptContext:
    if _is_empty(data):
        raise InsufficientDataError("No data to answer questions about.")
    if detect_health_data(data):
        hint = "This is health data. Consider health indicators and public health implications."
    else:
        hint = "Use professional formatting with sections and bullet points."
    sample = truncate_sample(data, max_records=5, max_keys=10, max_string_length=200, max_list_items=3)
    return PromptContext(
        kind="answer",
        role=(
            "You are a professional data analyst specializing in health data. Answer the following "
            "question about the provided data. Be concise and use professional language. Format your "
            "response with clear sections where appropriate."
        ),
        instructions=(
            "IMPORTANT: Your response must include BOTH qualitative insights AND quantitative findings "
            "with specific numbers.\n\nInclude the following in your response:\n"
            + "\n".join(f"{index}. {rule}" for index, rule in enumerate(_ANSWER_RULES, start=1))
        ),
        statistics=data_statistics(data, detailed=True),
        domain_hint=hint,
        data_sample=serialize_sample(sample, max_chars=1500),
        request_label="QUESTION",
        request=question,
        closing="ANSWER (include both qualitative insights AND specific numerical findings):",
        max_output_tokens=ANSWER_MAX_TOKENS,
    )


def build_visualization_prompt(request: str, data: Any) -> PromptContext:
    if _is_empty(data):
        raise InsufficientDataError("No data to visualize.")
    hint = ""
    if detect_health_data(data):
        hint = "This is health data. Choose appropriate chart types for health metrics."
    classification = classify_fields(data)
    sample = truncate_sample(data, max_records=8)
    return PromptContext(
        kind="visualization",
        role=(
            "You are a data visualization expert. Create a visualization configuration based on the "
            "user's request and the provided data sample."
        ),
        output_format=f"Return ONLY a valid JSON object with the following structure:\n{_VISUALIZATION_SCHEMA_TEXT}",
        rules=_JSON_RULES,
        statistics=data_statistics(data, detailed=False),
        numeric_fields=classification.numeric[:MAX_PROMPT_FIELDS],
        categorical_fields=classification.categorical[:MAX_PROMPT_FIELDS],
        domain_hint=hint,
        data_sample=serialize_sample(sample, max_chars=1000),
        request_label="USER REQUEST",
        request=request,
        closing="IMPORTANT: Return ONLY the JSON object with no additional text.",
        max_output_tokens=VISUALIZATION_MAX_TOKENS,
    )


def build_auto_visualization_prompt(data: Any, count: int = 5) -> PromptContext:
    if _is_empty(data):
        raise InsufficientDataError("No data to visualize.")
    classification = classify_fields(data)
    if not classification.has_chartable_pair:
        raise InsufficientDataError("Data needs at least one numeric and one categorical field.")
    sample = truncate_sample(data, max_records=10)
    return PromptContext(
        kind="auto_visualization",
        role=(
            "You are a data visualization expert. Based on the provided data sample, suggest "
            f"{count} different visualizations that would be most insightful."
        ),
        output_format=(
            "For each visualization, provide a JSON object with the following structure:\n"
            f"{_VISUALIZATION_SCHEMA_TEXT}\n\n"
            f"Return your response as a JSON array containing these {count} visualization objects."
        ),
        rules=_JSON_RULES,
        statistics=data_statistics(data, detailed=True),
        numeric_fields=classification.numeric[:MAX_PROMPT_FIELDS],
        categorical_fields=classification.categorical[:MAX_PROMPT_FIELDS],
        data_sample=serialize_sample(sample),
        closing="VISUALIZATIONS:",
        max_output_tokens=AUTO_VISUALIZATION_MAX_TOKENS,
    )
