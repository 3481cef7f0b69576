"""Tests for EngineClient."""

import pytest

from predictionio import AsyncResponse, ClientConfig, EngineClient, InvalidArgumentError

from conftest import FakeHTTPResponse, http_error


@pytest.fixture
def engine(connection):
    return EngineClient(connection=connection)


class TestEngineClient:
    """Test engine queries."""

    def test_send_query(self, engine, opener):
        """Test queries are posted to /queries.json."""
        opener.queue(FakeHTTPResponse(200, b'{"itemScores": [{"item": "i1", "score": 0.9}]}'))

        response = engine.send_query({"user": "u1", "num": 1})

        assert opener.last.get_method() == "POST"
        assert opener.last.full_url == "http://localhost:7070/queries.json"
        assert opener.last_json() == {"user": "u1", "num": 1}
        assert response.json()["itemScores"][0]["item"] == "i1"

    def test_query_error_returned(self, engine, opener):
        """Test engine errors are returned as responses."""
        opener.queue(http_error(500, b'{"message": "engine failure"}'))
        response = engine.send_query({"user": "u1"})
        assert response.status_code == 500
        assert not response.ok

    def test_send_query_async(self, engine, opener):
        """Test async queries resolve to the engine's answer."""
        opener.queue(FakeHTTPResponse(200, b'{"itemScores": []}'))
        handle = engine.send_query({"user": "u1"}, asynchronous=True)

        assert isinstance(handle, AsyncResponse)
        assert engine.wait(handle).json() == {"itemScores": []}

    def test_get_status(self, engine, opener):
        """Test get_status reads the engine root."""
        opener.queue(FakeHTTPResponse(200, b"<html>engine</html>"))
        assert engine.get_status() == "<html>engine</html>"

    def test_default_url(self):
        """Test the default engine URL."""
        with EngineClient() as engine:
            assert engine.connection.base_url == "http://localhost:8000"

    def test_default_url_with_config(self):
        """Test a config without a URL still targets the engine port."""
        with EngineClient(config=ClientConfig(timeout=5.0)) as engine:
            assert engine.connection.base_url == "http://localhost:8000"
            assert engine.connection.timeout == 5.0

    def test_config_url(self):
        """Test an explicit config URL is used."""
        with EngineClient(config=ClientConfig(url="http://engine:9000")) as engine:
            assert engine.connection.base_url == "http://engine:9000"

    def test_from_env(self, monkeypatch):
        """Test engine settings come from PIO_ENGINE_* variables."""
        monkeypatch.setenv("PIO_ENGINE_URL", "http://engine:8000")
        monkeypatch.setenv("PIO_ENGINE_MAX_RETRIES", "7")
        with EngineClient.from_env() as engine:
            assert engine.connection.base_url == "http://engine:8000"
            assert engine.connection.max_retries == 7


class TestFeedback:
    """Test prediction feedback."""

    def test_send_feedback(self, engine, event_client, opener):
        """Test feedback is an event tagged with the prediction id."""
        engine.feedback_client = event_client

        engine.send_feedback("pr-1", "buy", "user", "u1", {"qty": 2})

        body = opener.last_json()
        assert opener.last.full_url.startswith("http://localhost:7070/events.json")
        assert body["prId"] == "pr-1"
        assert body["event"] == "buy"
        assert body["properties"] == {"qty": 2}

    def test_feedback_needs_client(self, engine, opener):
        """Test feedback without an event client is rejected."""
        with pytest.raises(InvalidArgumentError) as excinfo:
            engine.send_feedback("pr-1", "buy", "user", "u1")
        assert excinfo.value.argument == "feedback_client"
        assert opener.requests == []

    def test_feedback_needs_pr_id(self, engine, event_client, opener):
        """Test feedback requires a prediction id."""
        engine.feedback_client = event_client
        with pytest.raises(InvalidArgumentError):
            engine.send_feedback("", "buy", "user", "u1")
        assert opener.requests == []
