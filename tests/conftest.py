from __future__ import annotations

from typing import Any

import pytest

from health_insights.ai_analytics_service import AIAnalyticsService
from health_insights.cache import ResultCache
from health_insights.config import Settings
from tests.fakes import FakeClock, FakeLLMClient, RecordingSleep


@pytest.fixture
def region_cases() -> list[dict[str, Any]]:
    return [
        {"region": "A", "cases": 10},
        {"region": "B", "cases": 20},
        {"region": "C", "cases": 5},
    ]


@pytest.fixture
def clinic_visits() -> list[dict[str, Any]]:
    return [
        {"district": "North", "facility": "Clinic 1", "month": "2024-01", "opd_visits": "120", "anc_visits": 30},
        {"district": "North", "facility": "Clinic 2", "month": "2024-02", "opd_visits": "95", "anc_visits": 25},
        {"district": "South", "facility": "Clinic 3", "month": "2024-01", "opd_visits": "150", "anc_visits": 41},
        {"district": "South", "facility": "Clinic 4", "month": "2024-02", "opd_visits": "80", "anc_visits": 18},
        {"district": "East", "facility": "Clinic 5", "month": "2024-03", "opd_visits": "60", "anc_visits": 12},
        {"district": "West", "facility": "Clinic 6", "month": "2024-03", "opd_visits": "110", "anc_visits": 33},
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_service(clock: FakeClock, recording_sleep: RecordingSleep):
    def factory(responses: list[Any], **settings: Any) -> tuple[AIAnalyticsService, FakeLLMClient]:
        client = FakeLLMClient(responses)
        service = AIAnalyticsService(
            llm_client=client,
            cache=ResultCache(clock=clock),
            settings=Settings(**settings),
            sleep=recording_sleep,
        )
        return service, client

    return factory
