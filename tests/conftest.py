"""Shared fixtures: a complete Config and a mocked PyGithub repository."""

from unittest.mock import Mock

import pytest

from propagator.config import Config


@pytest.fixture(autouse=True)
def no_github_output(monkeypatch):
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)


@pytest.fixture
def config() -> Config:
    return Config(
        github_token="gh-test-token",
        openai_api_key="sk-test",
        repository="acme/widgets",
        model="gpt-4-turbo",
        openai_api_url="https://api.openai.test/v1/chat/completions",
        github_api_url="https://api.github.test",
        label="propagator",
    )


@pytest.fixture
def repo() -> Mock:
    repo = Mock()
    repo.full_name = "acme/widgets"
    repo.get_pulls.return_value = []
    created = Mock()
    created.number = 42
    created.html_url = "https://github.com/acme/widgets/pull/42"
    repo.create_pull.return_value = created
    return repo
