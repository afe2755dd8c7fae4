from health_insights.config import Settings


ENV_NAMES = (
    "AI_PROVIDER",
    "LLM_MAX_RETRIES",
    "LLM_INITIAL_BACKOFF_SECONDS",
    "LLM_DEADLINE_SECONDS",
    "CACHE_MAX_ENTRIES",
    "ANSWER_CACHE_TTL_SECONDS",
    "VISUALIZATION_CACHE_TTL_SECONDS",
    "AUTO_VISUALIZATION_CACHE_TTL_SECONDS",
    "SUMMARY_CACHE_TTL_SECONDS",
    "AUTO_VISUALIZATION_LIMIT",
    "LOG_LEVEL",
)


def test_defaults_when_environment_is_empty(monkeypatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings == Settings()
    assert settings.deadline_seconds is None
    assert settings.answer_ttl_seconds == 300
    assert settings.summary_ttl_seconds == 1800


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("AI_PROVIDER", " OpenAI ")
    monkeypatch.setenv("LLM_MAX_RETRIES", "5")
    monkeypatch.setenv("LLM_INITIAL_BACKOFF_SECONDS", "0.5")
    monkeypatch.setenv("LLM_DEADLINE_SECONDS", "20")
    monkeypatch.setenv("VISUALIZATION_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.provider == "openai"
    assert settings.max_retries == 5
    assert settings.initial_backoff_seconds == 0.5
    assert settings.deadline_seconds == 20.0
    assert settings.visualization_ttl_seconds == 60
    assert settings.log_level == "DEBUG"
