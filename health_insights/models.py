from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChartKind = Literal["bar", "line", "pie", "donut"]
ResultSource = Literal["model", "fallback"]

CHART_KINDS: tuple[str, ...] = ("bar", "line", "pie", "donut")


class ChartData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    labels: list[str]
    values: list[float]
    dataset_label: str | None = Field(default=None, alias="datasetLabel")


class VisualizationConfig(BaseModel):
    type: ChartKind
    title: str
    description: str
    data: ChartData
    source: ResultSource = "model"

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
