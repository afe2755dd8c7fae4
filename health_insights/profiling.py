from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... (truncated)"

HEALTH_FIELDS = re.compile(
    r"patient|diagnosis|treatment|medication|disease|health|medical|"
    r"clinical|hospital|doctor|nurse|symptom|indicator",
    re.IGNORECASE,
)
HEALTH_SVCS = re.compile(r"(?:^|[^a-z])(opd|anc|immuni[sz]\w*|hiv|tb|malaria)(?:$|[^a-z])", re.IGNORECASE)


@dataclass(frozen=True)
class FieldClassification:
    numeric: tuple[str, ...]
    categorical: tuple[str, ...]

    @property
    def has_chartable_pair(self) -> bool:
        return bool(self.numeric) and bool(self.categorical)


def is_record_list(data: Any) -> bool:
    return isinstance(data, list) and len(data) > 0 and isinstance(data[0], dict)


def is_numeric_value(value: Any) -> bool:
    """Finite numbers and numeric-looking strings count; bools and empty strings do not."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        try:
            return math.isfinite(value)
        except OverflowError:
            return False
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return False
        try:
            return math.isfinite(float(text))
        except ValueError:
            return False
    return False


def to_number(value: Any) -> float | None:
    if not is_numeric_value(value):
        return None
    return float(value.strip()) if isinstance(value, str) else float(value)


def classify_fields(data: Any) -> FieldClassification:
    """Partition the first record's fields into numeric and categorical."""
    if not is_record_list(data):
        return FieldClassification(numeric=(), categorical=())
    first = data[0]
    numeric = tuple(str(key) for key, value in first.items() if is_numeric_value(value))
    categorical = tuple(
        str(key) for key, value in first.items() if isinstance(value, str) and str(key) not in numeric
    )
    return FieldClassification(numeric=numeric, categorical=categorical)


def detect_health_data(data: Any) -> bool:
    if not is_record_list(data):
        return False
    return any(HEALTH_FIELDS.search(str(key)) or HEALTH_SVCS.search(str(key)) for key in data[0].keys())


def truncate_sample(
    data: Any,
    max_records: int = 10,
    max_keys: int = 20,
    max_string_length: int = 500,
    max_list_items: int = 5,
) -> Any:
    if isinstance(data, list):
        return data[:max_records]
    if isinstance(data, dict):
        result: dict[str, Any] = {}
        for key in list(data.keys())[:max_keys]:
            value = data[key]
            if isinstance(value, str) and len(value) > max_string_length:
                result[key] = value[:max_string_length] + TRUNCATION_MARKER
            elif isinstance(value, list):
                result[key] = value[:max_list_items]
            else:
                result[key] = value
        return result
    return data


def serialize_sample(sample: Any, max_chars: int | None = None) -> str:
    text = json.dumps(sample, indent=2, ensure_ascii=False, default=str)
    if max_chars is not None and len(text) > max_chars:
        return text[:max_chars] + TRUNCATION_MARKER
    return text


def _records_frame(data: list[Any]) -> pd.DataFrame:
    return pd.DataFrame.from_records([row for row in data if isinstance(row, dict)])


def _numeric_series(frame: pd.DataFrame, field: str) -> pd.Series:
    if field not in frame.columns:
        return pd.Series(dtype=float)
    series = frame[field].map(to_number)
    return series.dropna().astype(float)


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _basic_statistics(data: Any) -> str:
    lines: list[str] = []
    if isinstance(data, list):
        lines.append(f"- Total number of records: {len(data)}")
        if is_record_list(data):
            fields = [str(key) for key in data[0].keys()]
            lines.append(f"- Fields per record: {len(fields)}")
            lines.append(f"- Field names: {', '.join(fields)}")
            classification = classify_fields(data)
            frame = _records_frame(data)
            numeric_lines = []
            for field in classification.numeric:
                values = _numeric_series(frame, field)
                if values.empty:
                    continue
                numeric_lines.append(
                    f"  - {field}: min={values.min():g}, max={values.max():g}, avg={_fmt(values.mean())}"
                )
            if numeric_lines:
                lines.append("- Numeric field statistics:")
                lines.extend(numeric_lines)
    elif isinstance(data, dict):
        lines.append(f"- Total number of keys: {len(data)}")
        lines.append(f"- Key names: {', '.join(str(key) for key in data.keys())}")
    return "\n".join(lines)


def _detailed_statistics(data: Any, top_categories: int = 5, max_categorical_fields: int = 3) -> str:
    lines: list[str] = []
    if isinstance(data, list):
        lines.append(f"- Total Records: {len(data)}")
        if is_record_list(data):
            fields = [str(key) for key in data[0].keys()]
            lines.append(f"- Fields: {len(fields)}")
            if fields:
                lines.append(f"- Key fields: {', '.join(fields[:7])}")

            classification = classify_fields(data)
            frame = _records_frame(data)

            numeric_lines: list[str] = []
            for field in classification.numeric:
                values = _numeric_series(frame, field)
                if values.empty:
                    continue
                avg = float(values.mean())
                numeric_lines.extend(
                    [
                        f"  - {field}:",
                        f"    - Range: {_fmt(values.min())} to {_fmt(values.max())}",
                        f"    - Average: {_fmt(avg)}",
                        f"    - Median: {_fmt(values.median())}",
                        f"    - Standard Deviation: {_fmt(values.std(ddof=0))}",
                        f"    - Distribution: {int((values > avg).sum())} values above average, "
                        f"{int((values < avg).sum())} below average",
                    ]
                )
            if numeric_lines:
                lines.append("- Numeric field statistics:")
                lines.extend(numeric_lines)

            categorical_lines: list[str] = []
            for field in classification.categorical[:max_categorical_fields]:
                if field not in frame.columns:
                    continue
                labels = frame[field].dropna().astype(str)
                counts = labels[labels != ""].value_counts().head(top_categories)
                if counts.empty:
                    continue
                categorical_lines.append(f"  - {field} (top {len(counts)}):")
                for category, count in counts.items():
                    percentage = count / len(data) * 100
                    categorical_lines.append(f"    - {category}: {int(count)} ({percentage:.1f}%)")
            if categorical_lines:
                lines.append("- Categorical field distributions:")
                lines.extend(categorical_lines)

            if len(classification.numeric) >= 2:
                first, second = classification.numeric[:2]
                pairs = pd.DataFrame(
                    {"x": frame[first].map(to_number), "y": frame[second].map(to_number)}
                ).dropna()
                if len(pairs) > 5:
                    correlation = pairs["x"].astype(float).corr(pairs["y"].astype(float))
                    if correlation is None or np.isnan(correlation):
                        correlation = 0.0
                    lines.append(
                        f"- Relationship: Correlation between {first} and {second} is {correlation:.2f}"
                    )
    elif isinstance(data, dict):
        lines.append(f"- Keys: {len(data)}")
        key_names = [str(key) for key in list(data.keys())[:7]]
        if key_names:
            lines.append(f"- Key names: {', '.join(key_names)}")
    return "\n".join(lines)


def data_statistics(data: Any, detailed: bool = True) -> str:
    """Plain-text statistics block for prompts; never raises."""
    try:
        return _detailed_statistics(data) if detailed else _basic_statistics(data)
    except Exception as exc:
        logger.warning("Could not compute dataset statistics: %s", exc)
        return "Basic dataset statistics unavailable."
