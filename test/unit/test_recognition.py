"""
Tests for the recognition client, mock guesser and reply parsing.
"""

import random

import numpy as np
import pytest
import requests

from airpictionary import recognition
from airpictionary.recognition import (
    MockGuessGenerator,
    RecognitionClient,
    RecognitionResult,
    RecognizerBackend,
    build_messages,
    create_client,
    parse_guesses,
)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeResponse:
    def __init__(self, status_code=200, content="", text=""):
        self.status_code = status_code
        self._content = content
        self.text = text

    def json(self):
        return {"choices": [{"message": {"content": self._content}}]}


@pytest.fixture
def clock():
    return FakeClock()


def make_client(clock, api_key=None, threshold=99, **kwargs):
    mock = MockGuessGenerator(rng=random.Random(7), threshold=threshold)
    return RecognitionClient(
        backend=RecognizerBackend.OPENAI,
        api_key=api_key,
        model_id="test-model",
        api_url="http://example.invalid/v1/chat/completions",
        timeout=5,
        min_interval=1.0,
        mock=mock,
        clock=clock,
        **kwargs
    )


# --- parsing ---------------------------------------------------------------

def test_parse_guesses_trims_uppercases_and_caps():
    assert parse_guesses(" car, Vehicle ,, truck, bus") == ["CAR", "VEHICLE", "TRUCK"]


def test_parse_guesses_empty():
    assert parse_guesses("") == []
    assert parse_guesses(" , ,") == []
    assert parse_guesses(None) == []


def test_build_messages_embeds_png_data_url():
    messages = build_messages("abc")
    content = messages[0]["content"]
    assert content[0]["type"] == "text"
    assert content[1]["image_url"]["url"] == "data:image/png;base64,abc"


def test_backend_from_name():
    assert RecognizerBackend.from_name(" OpenAI ") is RecognizerBackend.OPENAI
    assert RecognizerBackend.from_name("huggingface") is RecognizerBackend.HUGGINGFACE
    with pytest.raises(ValueError):
        RecognizerBackend.from_name("nope")


# --- mock guesser ----------------------------------------------------------

def test_mock_threshold_is_between_five_and_seven():
    rng = random.Random(0)
    for _ in range(50):
        assert 5 <= MockGuessGenerator(rng=rng).threshold <= 7


def test_mock_wrong_until_threshold_then_target_in_second_slot():
    mock = MockGuessGenerator(rng=random.Random(1), threshold=3)
    for _ in range(2):
        guesses = mock.generate("car")
        assert len(guesses) == 3
        assert "CAR" not in guesses
        assert all(g in MockGuessGenerator.VOCABULARY for g in guesses)

    for _ in range(3):
        assert mock.generate("car")[1] == "CAR"


def test_mock_wrong_guesses_never_match_the_target():
    mock = MockGuessGenerator(rng=random.Random(2), threshold=100)
    for _ in range(30):
        assert "CIRCLE" not in mock.generate("circle")


def test_mock_reset_restarts_counter():
    mock = MockGuessGenerator(rng=random.Random(3), threshold=1)
    mock.generate("CAR")
    mock.reset()
    assert mock.attempts == 0
    assert mock.threshold == 1


# --- client ----------------------------------------------------------------

def test_without_key_uses_mock(clock):
    client = make_client(clock, threshold=1)
    result = client.recognize("abc", "CAR")
    assert result.source == "mock"
    assert result.is_correct
    assert result.matched_guess == "CAR"
    assert result.guesses[1] == "CAR"


def test_rate_limit_returns_empty_result(clock):
    client = make_client(clock)
    first = client.recognize("abc", "CAR")
    assert len(first.guesses) == 3

    clock.now += 0.5
    throttled = client.recognize("abc", "CAR")
    assert throttled == RecognitionResult.throttled()
    assert throttled.guesses == ()
    assert not throttled.is_correct
    assert client.mock.attempts == 1

    clock.now += 0.5
    assert client.recognize("abc", "CAR").guesses


def test_reset_clears_rate_limit(clock):
    client = make_client(clock)
    client.recognize("abc", "CAR")
    client.reset()
    assert client.recognize("abc", "CAR").guesses
    assert client.mock.attempts == 1


def test_remote_success(clock, monkeypatch):
    sent = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        sent.update(url=url, headers=headers, json=json, timeout=timeout)
        return FakeResponse(content="truck, automobile, box")

    monkeypatch.setattr(recognition.requests, "post", fake_post)
    client = make_client(clock, api_key="sk-test")
    result = client.recognize("abc", "CAR")

    assert result.source == "remote"
    assert result.guesses == ("TRUCK", "AUTOMOBILE", "BOX")
    assert result.is_correct
    assert result.matched_guess == "AUTOMOBILE"
    assert sent["headers"]["Authorization"] == "Bearer sk-test"
    assert sent["json"]["model"] == "test-model"
    assert sent["timeout"] == 5
    assert "CAR" not in sent["json"]["messages"][0]["content"][0]["text"]


def test_per_call_key_overrides_client_key(clock, monkeypatch):
    seen = []

    def fake_post(url, headers=None, json=None, timeout=None):
        seen.append(headers["Authorization"])
        return FakeResponse(content="bike")

    monkeypatch.setattr(recognition.requests, "post", fake_post)
    client = make_client(clock, api_key="default")
    result = client.recognize("abc", "CAR", api_key="override")
    assert seen == ["Bearer override"]
    assert result.guesses == ("BIKE",)
    assert not result.is_correct


def test_http_error_falls_back_to_mock(clock, monkeypatch):
    monkeypatch.setattr(
        recognition.requests, "post",
        lambda *a, **kw: FakeResponse(status_code=500, text="boom")
    )
    client = make_client(clock, api_key="sk-test")
    result = client.recognize("abc", "CAR")
    assert result.source == "mock"
    assert len(result.guesses) == 3
    assert client.mock.attempts == 1


def test_network_error_falls_back_to_mock(clock, monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(recognition.requests, "post", fail)
    client = make_client(clock, api_key="sk-test", threshold=1)
    result = client.recognize("abc", "CAR")
    assert result.source == "mock"
    assert result.is_correct


def test_empty_reply_falls_back_to_mock(clock, monkeypatch):
    monkeypatch.setattr(recognition.requests, "post", lambda *a, **kw: FakeResponse(content=" , "))
    client = make_client(clock, api_key="sk-test")
    assert client.recognize("abc", "CAR").source == "mock"


def test_missing_snapshot_falls_back_to_mock(clock, monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("backend should not be called")

    monkeypatch.setattr(recognition.requests, "post", unexpected)
    client = make_client(clock, api_key="sk-test")
    assert client.recognize(None, "CAR").source == "mock"


def test_array_snapshot_is_encoded(clock, monkeypatch):
    payloads = []

    def fake_post(url, headers=None, json=None, timeout=None):
        payloads.append(json["messages"][0]["content"][1]["image_url"]["url"])
        return FakeResponse(content="circle")

    monkeypatch.setattr(recognition.requests, "post", fake_post)
    sketch = np.zeros((64, 64), dtype=np.uint8)
    sketch[20:40, 20:40] = 255

    client = make_client(clock, api_key="sk-test")
    client.recognize(sketch, "CAR")
    assert payloads[0].startswith("data:image/png;base64,iVBOR")


def test_create_client_mock_ignores_key():
    client = create_client(use_mock=True, api_key="sk-test", backend=RecognizerBackend.OPENAI)
    assert client.api_key is None


def test_create_client_with_key():
    client = create_client(api_key="hf-test", backend=RecognizerBackend.HUGGINGFACE)
    assert client.api_key == "hf-test"
    assert client.backend is RecognizerBackend.HUGGINGFACE
