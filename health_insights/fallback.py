"""
Model-free visualizations built directly from the data sample.

Used when the model pipeline is exhausted. Every function here is
deterministic and returns a result rather than raising.
"""

from __future__ import annotations

import re
from typing import Any

import pandas as pd

from health_insights.models import ChartData, ChartKind, VisualizationConfig
from health_insights.profiling import classify_fields, is_record_list, to_number

SINGLE_MAX_CATEGORIES = 7
BATCH_MAX_CATEGORIES = 8
BATCH_MAX_COMBINATIONS = 5
PIE_MAX_CATEGORIES = 5

ID_LIKE_CATEGORICAL = {"id", "uuid", "guid"}
ID_LIKE_NUMERIC = {"id", "level"}

DATE_LIKE = re.compile(r"^\d{4}(-\d{2})?(-\d{2})?$")
TITLE_FROM_REQUEST = re.compile(
    r"(?:show|create|generate|make|visualize|plot|draw)\s+(?:me\s+)?(?:an?\s+)?"
    r"(?:(?:bar|line|pie|donut)\s+)?(?:(?:chart|graph|plot|visualization)\s+)?(?:(?:of|for)\s+)?"
    r"(.+?)(?:\s+(?:by|with|using|from|in|across)\b|\s*\?|$)",
    re.IGNORECASE,
)


def _chart_kind_from_request(request: str) -> ChartKind:
    text = request.lower()
    if "pie" in text or "distribution" in text:
        return "pie"
    if "line" in text or "trend" in text:
        return "line"
    if "donut" in text:
        return "donut"
    return "bar"


def _title_from_request(request: str) -> str | None:
    match = TITLE_FROM_REQUEST.search(request)
    if not match:
        return None
    title = match.group(1).strip()
    return title[:1].upper() + title[1:] if title else None


def _mentioned_field(fields: list[str], request: str) -> str | None:
    text = request.lower()
    for name in fields:
        if name.lower() in text:
            return name
    return None


def _sum_by_category(records: list[dict[str, Any]], category_field: str, value_field: str, limit: int) -> tuple[list[str], list[float]]:
    frame = pd.DataFrame(
        {
            "category": [record.get(category_field) for record in records],
            "value": [to_number(record.get(value_field)) or 0.0 for record in records],
        }
    )
    frame = frame[frame["category"].notna()]
    frame = frame.assign(category=frame["category"].astype(str))
    frame = frame[frame["category"] != ""]
    if frame.empty:
        return [], []
    totals = frame.groupby("category", sort=False)["value"].sum().head(limit)
    return [str(label) for label in totals.index], [float(value) for value in totals.values]


def _count_by_category(records: list[dict[str, Any]], category_field: str, limit: int) -> tuple[list[str], list[float]]:
    labels = pd.Series([record.get(category_field) for record in records]).dropna().astype(str)
    counts = labels[labels != ""].value_counts(sort=False).head(limit)
    return [str(label) for label in counts.index], [float(count) for count in counts.values]


def generate_fallback_visualization(data: Any, request: str = "") -> VisualizationConfig:
    """Best-effort single chart guided by the wording of the request."""
    chart_kind = _chart_kind_from_request(request)
    title = _title_from_request(request)

    if is_record_list(data):
        records = [row for row in data if isinstance(row, dict)]
        classification = classify_fields(records)
        categorical = [name for name in classification.categorical if name.lower() not in ID_LIKE_CATEGORICAL]
        numeric = [name for name in classification.numeric if name.lower() not in ID_LIKE_NUMERIC]

        if categorical and numeric:
            category_field = _mentioned_field(categorical, request) or categorical[0]
            value_field = _mentioned_field(numeric, request) or numeric[0]
            labels, values = _sum_by_category(records, category_field, value_field, SINGLE_MAX_CATEGORIES)
            if labels:
                return VisualizationConfig(
                    type=chart_kind,
                    title=title or f"{value_field} by {category_field}",
                    description=f"Shows the distribution of {value_field} across different {category_field} categories",
                    data=ChartData(labels=labels, values=values, dataset_label=value_field),
                    source="fallback",
                )

        if numeric:
            value_field = _mentioned_field(numeric, request) or numeric[0]
            labels, values = [], []
            for index, record in enumerate(records[:SINGLE_MAX_CATEGORIES], start=1):
                number = to_number(record.get(value_field))
                if number is not None:
                    labels.append(f"Row {index}")
                    values.append(number)
            if labels:
                return VisualizationConfig(
                    type=chart_kind,
                    title=title or f"{value_field} per record",
                    description=f"Shows {value_field} for the first records in the dataset",
                    data=ChartData(labels=labels, values=values, dataset_label=value_field),
                    source="fallback",
                )

        if categorical:
            category_field = _mentioned_field(categorical, request) or categorical[0]
            labels, values = _count_by_category(records, category_field, SINGLE_MAX_CATEGORIES)
            if labels:
                return VisualizationConfig(
                    type=chart_kind,
                    title=title or f"Records by {category_field}",
                    description=f"Shows how many records fall into each {category_field} category",
                    data=ChartData(labels=labels, values=values, dataset_label="Records"),
                    source="fallback",
                )

    elif isinstance(data, dict):
        numeric_items = [(str(key), to_number(value)) for key, value in data.items() if to_number(value) is not None]
        if numeric_items:
            numeric_items = numeric_items[:SINGLE_MAX_CATEGORIES]
            return VisualizationConfig(
                type=chart_kind,
                title=title or "Numeric values",
                description="Shows the numeric values found at the top level of the dataset",
                data=ChartData(
                    labels=[key for key, _ in numeric_items],
                    values=[value for _, value in numeric_items],
                    dataset_label="Value",
                ),
                source="fallback",
            )

    record_count = len(data) if isinstance(data, (list, dict)) else 0
    return VisualizationConfig(
        type="bar",
        title=title or "Dataset size",
        description="No chartable fields were found; shows the number of records",
        data=ChartData(labels=["Records"], values=[float(record_count)], dataset_label="Records"),
        source="fallback",
    )


def generate_fallback_visualizations(data: Any, max_combinations: int = BATCH_MAX_COMBINATIONS) -> list[VisualizationConfig]:
    """One chart per categorical/numeric field combination; empty when no pair exists."""
    if not is_record_list(data):
        return []
    records = [row for row in data if isinstance(row, dict)]
    classification = classify_fields(records)
    if not classification.has_chartable_pair:
        return []

    categorical, numeric = classification.categorical, classification.numeric
    visualizations: list[VisualizationConfig] = []
    for index in range(min(max_combinations, len(categorical) * len(numeric))):
        category_field = categorical[index % len(categorical)]
        value_field = numeric[(index // len(categorical)) % len(numeric)]
        labels, values = _sum_by_category(records, category_field, value_field, BATCH_MAX_CATEGORIES)
        if not labels:
            continue

        chart_kind: ChartKind = "bar"
        if len(labels) <= PIE_MAX_CATEGORIES:
            chart_kind = "pie" if index % 2 == 0 else "donut"
        elif any(DATE_LIKE.match(label) for label in labels):
            chart_kind = "line"

        visualizations.append(
            VisualizationConfig(
                type=chart_kind,
                title=f"{value_field} by {category_field}",
                description=f"Distribution of {value_field} across different {category_field} categories",
                data=ChartData(labels=labels, values=values, dataset_label=value_field),
                source="fallback",
            )
        )
    return visualizations
