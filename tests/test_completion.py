from __future__ import annotations

import random

import pytest
import requests

from conftest import completion_payload, make_response
from innovative_sphere.completion import CompletionClient, sample_parameters
from innovative_sphere.config import Settings
from innovative_sphere.errors import (
    MalformedUpstreamResponse,
    RateLimited,
    Unauthorized,
    UpstreamError,
    UpstreamTimeout,
)


def test_sample_parameters_given_previous_pair_when_sampled_then_values_stay_in_range_and_differ() -> None:
    # Given
    rng = random.Random(99)
    previous = None

    # When
    pairs = []
    for _ in range(50):
        previous = sample_parameters(rng, previous)
        pairs.append(previous)

    # Then
    for temperature, top_p in pairs:
        assert 0.9 <= temperature <= 1.1
        assert 0.9 <= top_p <= 0.99
    assert all(a != b for a, b in zip(pairs, pairs[1:]))


def test_complete_given_success_when_called_then_request_shape_and_content_are_returned(make_client) -> None:
    # Given
    client, session = make_client([make_response(200, completion_payload("  raw reply  "))])

    # When
    content = client.complete("the prompt")

    # Then
    assert content == "  raw reply  "
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://mistral.test/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer test-key"
    assert call["timeout"] == 30.0
    body = call["json"]
    assert body["model"] == "mistral-test"
    assert body["max_tokens"] == 2000
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["messages"][1]["content"] == "the prompt"


def test_complete_given_two_failures_then_success_when_called_then_third_attempt_wins_with_fresh_sampling(
    make_client,
    sleeps,
) -> None:
    # Given
    client, session = make_client(
        [
            requests.ConnectionError("connection reset"),
            make_response(503, {"error": "unavailable"}),
            make_response(200, completion_payload("ok")),
        ],
        base_delay=0.5,
    )

    # When
    content = client.complete("prompt")

    # Then
    assert content == "ok"
    assert len(session.calls) == 3
    params = [(c["json"]["temperature"], c["json"]["top_p"]) for c in session.calls]
    assert params[0] != params[1]
    assert params[1] != params[2]
    assert sleeps == [0.5, 1.0]


def test_complete_given_persistent_401_when_called_then_unauthorized_is_raised_without_retry(
    make_client,
    sleeps,
) -> None:
    # Given
    client, session = make_client([make_response(401, {"message": "Unauthorized"})])

    # When
    with pytest.raises(Unauthorized) as excinfo:
        client.complete("prompt")

    # Then
    assert "Invalid API key" in str(excinfo.value)
    assert len(session.calls) == 1
    assert sleeps == []


def test_complete_given_persistent_429_when_called_then_rate_limited_after_exponential_backoff(
    make_client,
    sleeps,
) -> None:
    # Given
    client, session = make_client([make_response(429, {"message": "slow down"})], base_delay=1.0)

    # When
    with pytest.raises(RateLimited) as excinfo:
        client.complete("prompt")

    # Then
    assert str(excinfo.value) == "Rate limit exceeded. Please try again later."
    assert excinfo.value.kind == "rate_limited"
    assert len(session.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_complete_given_timeouts_when_called_then_timeout_error_after_all_attempts(make_client, sleeps) -> None:
    # Given
    client, session = make_client([requests.Timeout("read timed out")], base_delay=1.0)

    # When
    with pytest.raises(UpstreamTimeout):
        client.complete("prompt")

    # Then
    assert len(session.calls) == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": []},
        {"usage": {}},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": {"a": 1}},
        {"choices": 5},
        {"choices": ["text"]},
        {"choices": [{"message": {"content": 12}}]},
    ],
)
def test_complete_given_malformed_success_body_when_called_then_malformed_error_is_raised(
    make_client,
    payload,
) -> None:
    # Given
    client, session = make_client([make_response(200, payload)])

    # When
    with pytest.raises(MalformedUpstreamResponse):
        client.complete("prompt")

    # Then
    assert len(session.calls) == 3


def test_complete_given_unclassified_failures_when_exhausted_then_generic_error_names_attempts(make_client) -> None:
    # Given
    client, _ = make_client([make_response(500, {"error": "boom"})])

    # When
    with pytest.raises(UpstreamError) as excinfo:
        client.complete("prompt")

    # Then
    assert type(excinfo.value) is UpstreamError
    assert "after 3 attempts" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, requests.HTTPError)


def test_complete_given_non_json_body_when_called_then_malformed_error_is_raised(make_client) -> None:
    # Given
    client, _ = make_client([make_response(200, text="<html>gateway</html>")])

    # When
    with pytest.raises(MalformedUpstreamResponse):
        client.complete("prompt")

    # Then
    # Raised after the retry budget is spent.


def test_client_given_missing_key_when_constructed_then_unauthorized_is_raised() -> None:
    # Given
    api_key = None

    # When
    with pytest.raises(Unauthorized, match="not configured"):
        CompletionClient(api_key)

    # Then
    # Construction failed before any request was possible.


def test_from_settings_given_settings_when_built_then_values_are_applied() -> None:
    # Given
    settings = Settings(
        mistral_api_key="k",
        mistral_api_url="https://example.test/v1/",
        mistral_model="m",
        upstream_timeout=5,
        upstream_max_attempts=2,
        upstream_retry_delay=0.1,
        max_tokens=100,
    )

    # When
    client = CompletionClient.from_settings(settings)

    # Then
    assert client.base_url == "https://example.test/v1"
    assert client.model == "m"
    assert client.timeout == 5
    assert client.max_attempts == 2
    assert client.base_delay == 0.1
    assert client.max_tokens == 100
