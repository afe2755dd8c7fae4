"""
FastAPI REST API for the health insights service.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from health_insights.ai_analytics_service import AIAnalyticsService
from health_insights.config import Settings

router = APIRouter(prefix="/api/v1", tags=["health-insights-v1"])

_service: AIAnalyticsService | None = None

DataSample = list[dict[str, Any]] | dict[str, Any]


class SummarizeRequest(BaseModel):
    data: DataSample


class AskRequest(BaseModel):
    question: str = Field(min_length=1)
    data: DataSample


class VisualizeRequest(BaseModel):
    request: str = Field(min_length=1)
    data: DataSample


class AutoVisualizeRequest(BaseModel):
    data: DataSample


class ReportRequest(BaseModel):
    data: DataSample
    title: str = "Health Data Analysis Report"


def get_service() -> AIAnalyticsService:
    global _service
    if _service is None:
        _service = AIAnalyticsService(settings=Settings.from_env())
    return _service


def _require_data(data: DataSample) -> DataSample:
    if not data:
        raise HTTPException(status_code=400, detail="No data supplied. Upload a file or connect a data source first.")
    return data


@router.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok", "service": "health-insights", "version": "1.0.0"}


@router.post("/summarize")
def summarize(body: SummarizeRequest, service: AIAnalyticsService = Depends(get_service)) -> dict[str, str]:
    return {"summary": service.summarize(_require_data(body.data))}


@router.post("/ask")
def ask(body: AskRequest, service: AIAnalyticsService = Depends(get_service)) -> dict[str, str]:
    answer = service.answer(body.question, _require_data(body.data))
    return {"question": body.question, "answer": answer}


@router.post("/visualize")
def visualize(body: VisualizeRequest, service: AIAnalyticsService = Depends(get_service)) -> dict[str, Any]:
    config = service.visualize(body.request, _require_data(body.data))
    return {"visualization": config.to_payload()}


@router.post("/auto-visualize")
def auto_visualize(body: AutoVisualizeRequest, service: AIAnalyticsService = Depends(get_service)) -> dict[str, Any]:
    configs = service.auto_visualize(_require_data(body.data))
    return {"visualizations": [config.to_payload() for config in configs]}


@router.post("/report", response_class=HTMLResponse)
def report(body: ReportRequest, service: AIAnalyticsService = Depends(get_service)) -> HTMLResponse:
    return HTMLResponse(content=service.report(_require_data(body.data), title=body.title))
