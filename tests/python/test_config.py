"""Tests for ClientConfig."""

from predictionio import ClientConfig, DEFAULT_ENGINE_URL, DEFAULT_EVENT_URL


class TestClientConfig:
    """Test configuration defaults and environment loading."""

    def test_defaults(self):
        """Test default values."""
        config = ClientConfig()
        assert config.url is None
        assert config.timeout == 60.0
        assert config.max_retries == 3
        assert config.threads == 1

    def test_from_env(self, monkeypatch):
        """Test values are read from PIO_* variables."""
        monkeypatch.setenv("PIO_URL", "http://pio:7070")
        monkeypatch.setenv("PIO_TIMEOUT", "2.5")
        monkeypatch.setenv("PIO_MAX_RETRIES", "5")
        monkeypatch.setenv("PIO_RETRY_DELAY", "0.1")
        monkeypatch.setenv("PIO_THREADS", "8")

        config = ClientConfig.from_env()

        assert config == ClientConfig(
            url="http://pio:7070", timeout=2.5, max_retries=5, retry_delay=0.1, threads=8
        )

    def test_from_env_default_url(self, monkeypatch):
        """Test from_env falls back to the Event Server URL."""
        monkeypatch.delenv("PIO_URL", raising=False)
        assert ClientConfig.from_env().url == DEFAULT_EVENT_URL

    def test_from_env_bad_values(self, monkeypatch):
        """Test unparseable values fall back to defaults."""
        monkeypatch.setenv("PIO_MAX_RETRIES", "many")
        monkeypatch.setenv("PIO_TIMEOUT", "soon")

        config = ClientConfig.from_env()

        assert config.max_retries == 3
        assert config.timeout == 60.0

    def test_from_env_prefix(self, monkeypatch):
        """Test a custom prefix and default URL."""
        monkeypatch.delenv("PIO_ENGINE_URL", raising=False)
        config = ClientConfig.from_env("PIO_ENGINE_", default_url=DEFAULT_ENGINE_URL)
        assert config.url == DEFAULT_ENGINE_URL
