"""
Recovery of JSON payloads from free-text model responses.

Model output is located by span (first opening delimiter to last closing
delimiter of the same kind), passed through an ordered list of textual repair
rules, then parsed strictly. Repair rules never touch the inside of string
literals: literals are masked before the rules run and restored afterwards.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

Container = Literal["object", "array"]

_DELIMITERS: dict[str, tuple[str, str]] = {"object": ("{", "}"), "array": ("[", "]")}
_STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
_MASKED_LITERAL = re.compile(r'"\x00(\d+)\x00"')
_MAX_REPAIR_PASSES = 5


class ExtractionError(ValueError):
    """No JSON span of the requested kind exists in the text."""


class ParseError(ValueError):
    """A span was found but is not valid JSON after repair."""


@dataclass(frozen=True)
class RepairRule:
    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


REPAIR_RULES: tuple[RepairRule, ...] = (
    RepairRule("line_comments", re.compile(r"//[^\n]*"), ""),
    RepairRule("block_comments", re.compile(r"/\*.*?\*/", re.DOTALL), ""),
    RepairRule("empty_ellipsis_array", re.compile(r"\[\s*(?:\.{3}|…)\s*\]"), "[]"),
    RepairRule("string_ellipsis_array", re.compile(r'\[\s*("[^"]*")\s*,\s*(?:\.{3}|…)\s*\]'), r"[\1]"),
    RepairRule("number_ellipsis_array", re.compile(r"\[\s*(-?\d+(?:\.\d+)?)\s*,\s*(?:\.{3}|…)\s*\]"), r"[\1]"),
    RepairRule("mid_array_ellipsis", re.compile(r",\s*(?:\.{3}|…)\s*,"), ","),
    RepairRule("closing_ellipsis", re.compile(r",\s*(?:\.{3}|…)\s*\]"), "]"),
    RepairRule("opening_ellipsis", re.compile(r"\[\s*(?:\.{3}|…)\s*,"), "["),
    RepairRule("residual_ellipsis", re.compile(r"\.{3}|…"), ""),
    RepairRule("trailing_commas", re.compile(r",\s*([\]}])"), r"\1"),
)


def extract_json_span(text: str, container: Container = "object") -> str:
    opening, closing = _DELIMITERS[container]
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end == -1 or end <= start:
        raise ExtractionError(f"Failed to extract a JSON {container} from LLM response")
    return text[start : end + 1]


def _mask_strings(text: str) -> tuple[str, list[str]]:
    literals: list[str] = []

    def mask(match: re.Match[str]) -> str:
        literals.append(match.group(0))
        return f'"\x00{len(literals) - 1}\x00"'

    return _STRING_LITERAL.sub(mask, text), literals


def _unmask_strings(text: str, literals: list[str]) -> str:
    return _MASKED_LITERAL.sub(lambda m: literals[int(m.group(1))], text)


def apply_repair_rules(text: str, rules: tuple[RepairRule, ...] = REPAIR_RULES) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def repair_json_text(text: str, rules: tuple[RepairRule, ...] = REPAIR_RULES) -> str:
    """Apply the repair rules outside string literals until the text is stable."""
    masked, literals = _mask_strings(text)
    for _ in range(_MAX_REPAIR_PASSES):
        repaired = apply_repair_rules(masked, rules)
        if repaired == masked:
            break
        masked = repaired
    return _unmask_strings(masked, literals)


def parse_model_json(text: str, container: Container = "object") -> Any:
    span = extract_json_span(text, container)
    cleaned = repair_json_text(span)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.debug("JSON parsing error %s for string: %s", exc, cleaned)
        raise ParseError(f"Failed to parse JSON {container}: {exc}") from exc

    expected = dict if container == "object" else list
    if not isinstance(parsed, expected):
        raise ParseError(f"Expected a JSON {container}, got {type(parsed).__name__}")
    return parsed


# Field-level recovery for single visualizations whose JSON stays broken.
_TYPE_FIELD = re.compile(r'"type"\s*:\s*"(bar|line|pie|donut)"', re.IGNORECASE)
_TITLE_FIELD = re.compile(r'"title"\s*:\s*"([^"]+)"', re.IGNORECASE)
_DESCRIPTION_FIELD = re.compile(r'"description"\s*:\s*"([^"]+)"', re.IGNORECASE)
_LABELS_FIELD = re.compile(r'"labels"\s*:\s*\[(.*?)\]', re.DOTALL)
_VALUES_FIELD = re.compile(r'"values"\s*:\s*\[(.*?)\]', re.DOTALL)
_LEADING_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?")


def salvage_visualization(text: str, request: str = "", max_labels: int = 5) -> dict[str, Any] | None:
    labels_match = _LABELS_FIELD.search(text)
    values_match = _VALUES_FIELD.search(text)
    if not labels_match or not values_match:
        return None

    labels = [
        item[1:-1]
        for item in (part.strip() for part in labels_match.group(1).split(","))
        if len(item) >= 2 and item.startswith('"') and item.endswith('"')
    ]
    labels = [label for label in labels if label][:max_labels]

    values: list[float] = []
    for part in values_match.group(1).split(","):
        number = _LEADING_NUMBER.match(part.strip())
        if number:
            values.append(float(number.group(0)))
    values = values[: len(labels)]

    if not labels or not values or len(labels) != len(values):
        return None

    type_match = _TYPE_FIELD.search(text)
    title_match = _TITLE_FIELD.search(text)
    description_match = _DESCRIPTION_FIELD.search(text)
    return {
        "type": type_match.group(1).lower() if type_match else "bar",
        "title": title_match.group(1) if title_match else f"Visualization for {request[:20]}",
        "description": description_match.group(1) if description_match else "Generated visualization",
        "data": {"labels": labels, "values": values, "datasetLabel": "Value"},
    }
