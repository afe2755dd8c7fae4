from __future__ import annotations

import logging
import math
from typing import Any

from jsonschema import ValidationError, validate

from health_insights.llm_schemas import VISUALIZATION_BATCH_SCHEMA, VISUALIZATION_SCHEMA
from health_insights.models import ChartData, VisualizationConfig

logger = logging.getLogger(__name__)


class SchemaValidationError(ValueError):
    pass


class ChartValidationError(SchemaValidationError):
    pass


def validate_schema(output: Any, schema: dict[str, Any]) -> None:
    try:
        validate(instance=output, schema=schema)
    except ValidationError as exc:
        raise SchemaValidationError(exc.message) from exc


def _coerce_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return value
        return number if math.isfinite(number) else value
    return value


def _prepare_candidate(candidate: Any) -> dict[str, Any]:
    if not isinstance(candidate, dict):
        raise ChartValidationError(f"Visualization must be an object, got {type(candidate).__name__}")
    payload = dict(candidate)
    if isinstance(payload.get("type"), str):
        payload["type"] = payload["type"].strip().lower()
    data = payload.get("data")
    if isinstance(data, dict):
        data = dict(data)
        if isinstance(data.get("values"), list):
            data["values"] = [_coerce_number(value) for value in data["values"]]
        payload["data"] = data
    return payload


def normalize_visualization(candidate: Any) -> VisualizationConfig:
    """
    Validate one model candidate and align its label/value arrays.

    Mismatched arrays are truncated to the shorter length, never padded.
    A candidate left with no data points is rejected.
    """
    payload = _prepare_candidate(candidate)
    try:
        validate_schema(payload, VISUALIZATION_SCHEMA)
    except SchemaValidationError as exc:
        raise ChartValidationError(f"Invalid visualization configuration: {exc}") from exc

    data = payload["data"]
    labels = data["labels"]
    try:
        values = [float(value) for value in data["values"]]
    except OverflowError as exc:
        raise ChartValidationError("Visualization values must fit in a float") from exc
    if any(not math.isfinite(value) for value in values):
        raise ChartValidationError("Visualization values must be finite numbers")

    size = min(len(labels), len(values))
    if size == 0:
        raise ChartValidationError("Visualization has no data points")
    if len(labels) != len(values):
        logger.info("Truncating visualization arrays from %d labels/%d values to %d", len(labels), len(values), size)

    dataset_label = data.get("datasetLabel")
    return VisualizationConfig(
        type=payload["type"],
        title=payload["title"].strip(),
        description=payload["description"],
        data=ChartData(
            labels=[str(label) for label in labels[:size]],
            values=values[:size],
            dataset_label=str(dataset_label) if dataset_label is not None else None,
        ),
        source="model",
    )


def validate_visualization_batch(candidates: Any, limit: int = 3) -> list[VisualizationConfig]:
    """Keep the valid candidates, capped at limit; an empty survivor set raises."""
    try:
        validate_schema(candidates, VISUALIZATION_BATCH_SCHEMA)
    except SchemaValidationError as exc:
        raise ChartValidationError(f"Invalid visualization batch: {exc}") from exc

    survivors: list[VisualizationConfig] = []
    for index, candidate in enumerate(candidates):
        try:
            survivors.append(normalize_visualization(candidate))
        except ChartValidationError as exc:
            logger.info("Dropping visualization %d from batch: %s", index, exc)
        if len(survivors) >= limit:
            break

    if not survivors:
        raise ChartValidationError("No valid visualizations in model response")
    return survivors
