import pytest

CONFIG_VARS = (
    "GEMINI_API_KEY",
    "API_KEY",
    "GEMINI_BASE_URL",
    "ADVENTURE_MODEL",
    "IMAGE_MODEL",
    "CHAT_MODEL",
    "GENAI_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip config variables before every test so a developer's real key never leaks in."""
    for var in CONFIG_VARS:
        monkeypatch.delenv(var, raising=False)
