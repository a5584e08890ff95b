"""Tests for prompt building, diff fetch and the chat-completion call."""

from unittest.mock import Mock, patch

import requests

from propagator.utils import (
    REVIEW_HEADING,
    TEMPERATURE,
    build_prompt,
    fetch_pr_diff,
    format_review_comment,
    parse_pr_number,
    send_to_ai,
)


def http_response(json_data=None, text="") -> Mock:
    resp = Mock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = json_data
    resp.text = text
    return resp


def test_parse_pr_number() -> None:
    assert parse_pr_number("https://github.com/acme/widgets/pull/123\n") == 123
    assert parse_pr_number("https://github.com/acme/widgets/issues/123") is None
    assert parse_pr_number(None) is None


def test_build_prompt_embeds_context() -> None:
    diff = "<<<<<<< HEAD\nx = 1\n=======\nx = 2\n>>>>>>> dev"
    prompt = build_prompt(9, "dev", "main", diff)

    assert "Pull Request: #9" in prompt
    assert "**dev** into the target branch **main**" in prompt
    assert f"--- CONFLICT DIFF START ---\n{diff}\n--- CONFLICT DIFF END ---" in prompt
    assert "manual intervention is required" in prompt
    assert "Markdown" in prompt


def test_build_prompt_without_diff() -> None:
    prompt = build_prompt(9, "dev", "main")
    assert "--- CONFLICT DIFF START ---\n\n--- CONFLICT DIFF END ---" in prompt
    assert "None" not in prompt


def test_format_review_comment() -> None:
    assert format_review_comment("Keep theirs.") == f"{REVIEW_HEADING}\n\nKeep theirs."


def test_fetch_pr_diff_requests_diff_media_type(config) -> None:
    with patch("propagator.utils.requests.get", return_value=http_response(text="diff --git a b")) as get:
        result = fetch_pr_diff(config, 5)

    assert result.ok
    assert result.value == "diff --git a b"
    url = get.call_args[0][0]
    headers = get.call_args[1]["headers"]
    assert url == "https://api.github.test/repos/acme/widgets/pulls/5"
    assert headers["Accept"] == "application/vnd.github.v3.diff"
    assert headers["Authorization"] == "Bearer gh-test-token"


def test_fetch_pr_diff_http_error(config) -> None:
    resp = http_response()
    resp.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
    with patch("propagator.utils.requests.get", return_value=resp):
        result = fetch_pr_diff(config, 5)

    assert not result.ok
    assert "404" in result.error


def test_send_to_ai_payload(config) -> None:
    body = {"choices": [{"message": {"role": "assistant", "content": "Analysis"}}]}
    with patch("propagator.utils.requests.post", return_value=http_response(body)) as post:
        result = send_to_ai("prompt text", config)

    assert result.ok
    assert result.value == "Analysis"
    assert post.call_args[0][0] == config.openai_api_url
    payload = post.call_args[1]["json"]
    assert payload == {
        "model": "gpt-4-turbo",
        "messages": [{"role": "user", "content": "prompt text"}],
        "temperature": TEMPERATURE,
    }
    assert post.call_args[1]["headers"]["Authorization"] == "Bearer sk-test"


def test_send_to_ai_connection_error(config) -> None:
    with patch("propagator.utils.requests.post", side_effect=requests.ConnectionError("refused")):
        result = send_to_ai("p", config)
    assert not result.ok
    assert "refused" in result.error


def test_send_to_ai_empty_choices(config) -> None:
    with patch("propagator.utils.requests.post", return_value=http_response({"choices": []})):
        result = send_to_ai("p", config)
    assert not result.ok


def test_send_to_ai_empty_content(config) -> None:
    body = {"choices": [{"message": {"content": ""}}]}
    with patch("propagator.utils.requests.post", return_value=http_response(body)):
        assert not send_to_ai("p", config).ok


def test_send_to_ai_bad_json(config) -> None:
    resp = http_response()
    resp.json.side_effect = ValueError("Expecting value")
    with patch("propagator.utils.requests.post", return_value=resp):
        assert not send_to_ai("p", config).ok
    with patch("propagator.utils.requests.post", return_value=http_response(["not", "a", "dict"])):
        assert not send_to_ai("p", config).ok
