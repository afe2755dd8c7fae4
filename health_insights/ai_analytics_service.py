"""
Caller-facing analysis operations.

Every operation runs the same pipeline: build a bounded prompt, call the
model under the retry controller, recover and validate the JSON payload,
cache the validated result. When the pipeline is exhausted the caller gets a
degraded but valid result (a fallback chart or an apologetic message), never
an exception.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from health_insights.cache import ResultCache, cache_key
from health_insights.config import Settings
from health_insights.fallback import generate_fallback_visualization, generate_fallback_visualizations
from health_insights.json_repair import ExtractionError, ParseError, parse_model_json, salvage_visualization
from health_insights.llm_client import LLMClient, ModelError, create_llm_client_from_env
from health_insights.llm_gate import ChartValidationError, normalize_visualization, validate_visualization_batch
from health_insights.models import VisualizationConfig
from health_insights.prompts import (
    InsufficientDataError,
    PromptContext,
    build_answer_prompt,
    build_auto_visualization_prompt,
    build_summary_prompt,
    build_visualization_prompt,
)
from health_insights.report import render_report
from health_insights.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

SUMMARY_FAILURE_MESSAGE = (
    "Failed to analyze the data. The dataset might be too large. "
    "Try uploading a smaller file or a sample of your data."
)
ANSWER_FAILURE_MESSAGE = (
    "I'm sorry, I couldn't reach the analysis model. Please try again with a more specific "
    "question or wait a moment before asking another question."
)
NO_DATA_MESSAGE = "No data available to analyze. Upload a file or connect a data source first."

VISUALIZATION_RETRY_ERRORS = (ModelError, ExtractionError, ParseError, ChartValidationError)
AUTO_VISUALIZATION_RETRY_ERRORS = (ModelError, ExtractionError, ParseError)
TEXT_RETRY_ERRORS = (ModelError,)


class AIAnalyticsService:
    def __init__(
        self,
        llm_client: LLMClient | None = None,
        cache: ResultCache | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], Any] = time.sleep,
        client_factory: Callable[[str], LLMClient] = create_llm_client_from_env,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else ResultCache(max_entries=self.settings.cache_max_entries)
        self.retry_policy = RetryPolicy(
            max_attempts=self.settings.max_retries,
            initial_delay=self.settings.initial_backoff_seconds,
            max_elapsed=self.settings.deadline_seconds,
        )
        self._llm_client = llm_client
        self._client_factory = client_factory
        self._sleep = sleep

    def _get_llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = self._client_factory(self.settings.provider)
        return self._llm_client

    def _complete_text(self, prompt: PromptContext, label: str) -> str:
        client = self._get_llm_client()
        text = call_with_retry(
            lambda: client.complete(prompt.render(), prompt.max_output_tokens),
            self.retry_policy,
            retry_on=TEXT_RETRY_ERRORS,
            sleep=self._sleep,
            label=label,
        )
        return text.strip()

    def summarize(self, data: Any) -> str:
        key = cache_key("summary", "", data)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached summary")
            return cached

        try:
            prompt = build_summary_prompt(data)
        except InsufficientDataError:
            return NO_DATA_MESSAGE

        try:
            summary = self._complete_text(prompt, label="summarize")
        except ModelError as exc:
            logger.warning("Error analyzing data: %s", exc)
            return SUMMARY_FAILURE_MESSAGE

        self.cache.set(key, summary, self.settings.summary_ttl_seconds)
        return summary

    def answer(self, question: str, data: Any) -> str:
        key = cache_key("answer", question, data)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached response for: %s", question)
            return cached

        try:
            prompt = build_answer_prompt(question, data)
        except InsufficientDataError:
            return NO_DATA_MESSAGE

        try:
            response = self._complete_text(prompt, label="answer")
        except ModelError as exc:
            logger.warning("Error generating response: %s", exc)
            return ANSWER_FAILURE_MESSAGE

        self.cache.set(key, response, self.settings.answer_ttl_seconds)
        return response

    def _visualization_attempt(self, client: LLMClient, prompt: PromptContext, request: str) -> VisualizationConfig:
        text = client.complete(prompt.render(), prompt.max_output_tokens)
        try:
            candidate = parse_model_json(text, "object")
        except ParseError:
            candidate = salvage_visualization(text, request)
            if candidate is None:
                raise
            logger.info("Recovered visualization fields from malformed JSON")
        return normalize_visualization(candidate)

    def visualize(self, request: str, data: Any) -> VisualizationConfig:
        key = cache_key("visualization", request, data)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached visualization for: %s", request)
            return cached.model_copy(deep=True)

        try:
            prompt = build_visualization_prompt(request, data)
            client = self._get_llm_client()
            config = call_with_retry(
                lambda: self._visualization_attempt(client, prompt, request),
                self.retry_policy,
                retry_on=VISUALIZATION_RETRY_ERRORS,
                sleep=self._sleep,
                label="visualize",
            )
        except (InsufficientDataError, *VISUALIZATION_RETRY_ERRORS) as exc:
            logger.warning("Error generating visualization, using fallback: %s", exc)
            return generate_fallback_visualization(data, request)

        self.cache.set(key, config.model_copy(deep=True), self.settings.visualization_ttl_seconds)
        return config

    def _auto_visualization_attempt(self, client: LLMClient, prompt: PromptContext) -> list[VisualizationConfig]:
        text = client.complete(prompt.render(), prompt.max_output_tokens)
        candidates = parse_model_json(text, "array")
        return validate_visualization_batch(candidates, limit=self.settings.auto_visualization_limit)

    def auto_visualize(self, data: Any) -> list[VisualizationConfig]:
        try:
            prompt = build_auto_visualization_prompt(data)
        except InsufficientDataError as exc:
            logger.info("Skipping auto visualizations: %s", exc)
            return []

        key = cache_key("auto_visualization", "", data)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached auto visualizations")
            return [config.model_copy(deep=True) for config in cached]

        try:
            client = self._get_llm_client()
            configs = call_with_retry(
                lambda: self._auto_visualization_attempt(client, prompt),
                self.retry_policy,
                retry_on=AUTO_VISUALIZATION_RETRY_ERRORS,
                sleep=self._sleep,
                label="auto_visualize",
            )
        except (ChartValidationError, *AUTO_VISUALIZATION_RETRY_ERRORS) as exc:
            logger.warning("Error generating auto visualizations, using fallback: %s", exc)
            return generate_fallback_visualizations(data)

        self.cache.set(
            key,
            tuple(config.model_copy(deep=True) for config in configs),
            self.settings.auto_visualization_ttl_seconds,
        )
        return configs

    def report(self, data: Any, title: str = "Health Data Analysis Report") -> str:
        """Printable HTML report combining the summary and auto visualizations."""
        summary = self.summarize(data)
        visualizations = self.auto_visualize(data)
        return render_report(data, summary, visualizations, title=title)
