from __future__ import annotations

from health_insights.models import CHART_KINDS

CHART_DATA_SCHEMA: dict = {
    "type": "object",
    "required": ["labels", "values"],
    "properties": {
        "labels": {"type": "array"},
        "values": {"type": "array", "items": {"type": "number"}},
        "datasetLabel": {"type": ["string", "null"]},
    },
}


VISUALIZATION_SCHEMA: dict = {
    "type": "object",
    "required": ["type", "title", "description", "data"],
    "properties": {
        "type": {"type": "string", "enum": list(CHART_KINDS)},
        "title": {"type": "string", "minLength": 1, "pattern": r"\S"},
        "description": {"type": "string"},
        "data": CHART_DATA_SCHEMA,
    },
}


VISUALIZATION_BATCH_SCHEMA: dict = {"type": "array"}
