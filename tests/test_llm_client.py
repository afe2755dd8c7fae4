import pytest

from health_insights.llm_client import (
    GroqClient,
    ModelError,
    ModelUnavailableError,
    RateLimitedError,
    _BaseProviderAdapter,
    classify_provider_error,
    create_llm_client_from_env,
    parse_retry_after,
)

GROQ_RATE_LIMIT = (
    "Rate limit reached for model `llama-3.1-8b-instant` in organization `org_x` on tokens per minute "
    "(TPM): Limit 6000, Used 5800, Requested 900. Please try again in 7.03s."
)


class StatusError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScriptedAdapter(_BaseProviderAdapter):
    def __init__(self, outcome) -> None:
        super().__init__(model="test-model")
        self.outcome = outcome
        self.seen: list[tuple[str, int]] = []

    def _completion(self, prompt: str, max_output_tokens: int) -> str:
        self.seen.append((prompt, max_output_tokens))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.mark.parametrize(
    "message, expected",
    [
        (GROQ_RATE_LIMIT, 7.03),
        ("Please try again in 2m3.5s.", 123.5),
        ("please TRY AGAIN IN 12s", 12.0),
        ("Rate limit reached.", None),
        ("", None),
    ],
)
def test_parse_retry_after(message: str, expected) -> None:
    assert parse_retry_after(message) == expected


def test_classify_rate_limit_message() -> None:
    error = classify_provider_error(RuntimeError(GROQ_RATE_LIMIT))
    assert isinstance(error, RateLimitedError)
    assert error.wait_seconds == pytest.approx(7.03)


def test_classify_http_429_without_hint() -> None:
    error = classify_provider_error(StatusError("Too Many Requests", status_code=429))
    assert isinstance(error, RateLimitedError)
    assert error.wait_seconds is None


def test_classify_other_errors() -> None:
    error = classify_provider_error(StatusError("Internal server error", status_code=500))
    assert type(error) is ModelError
    assert str(error) == "Internal server error"


def test_classify_passes_model_errors_through() -> None:
    original = RateLimitedError("Rate limit", wait_seconds=1.0)
    assert classify_provider_error(original) is original


def test_adapter_returns_text_and_forwards_budget() -> None:
    adapter = ScriptedAdapter("hello")
    assert adapter.complete("prompt", 321) == "hello"
    assert adapter.seen == [("prompt", 321)]


def test_adapter_wraps_provider_failures() -> None:
    adapter = ScriptedAdapter(RuntimeError(GROQ_RATE_LIMIT))
    with pytest.raises(RateLimitedError) as excinfo:
        adapter.complete("prompt", 100)
    assert excinfo.value.wait_seconds == pytest.approx(7.03)


def test_adapter_rejects_empty_content() -> None:
    with pytest.raises(ModelError):
        ScriptedAdapter("   ").complete("prompt", 100)


def test_factory_requires_credentials(monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(ModelUnavailableError):
        create_llm_client_from_env("groq")


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ModelUnavailableError):
        create_llm_client_from_env("mystery")


def test_factory_builds_groq_client(monkeypatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
    monkeypatch.setenv("GROQ_MODEL", "llama-3.1-8b-instant")
    client = create_llm_client_from_env("groq")
    assert isinstance(client, GroqClient)
    assert client.model == "llama-3.1-8b-instant"
