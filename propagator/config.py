import os
from collections import namedtuple

DEFAULT_MODEL = "gpt-4-turbo"
DEFAULT_OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_LABEL = "propagator"

Config = namedtuple(
    "Config",
    [
        "github_token",
        "openai_api_key",
        "repository",
        "model",
        "openai_api_url",
        "github_api_url",
        "label",
    ],
)


def _get(env, key, default=None):
    value = env.get(key)
    if value is None:
        return default
    value = value.strip()
    return value or default


def load_config(env=None):
    """Build a Config from an environment mapping (os.environ by default)."""
    env = os.environ if env is None else env
    return Config(
        github_token=_get(env, "GITHUB_TOKEN") or _get(env, "GH_TOKEN"),
        openai_api_key=_get(env, "OPENAI_API_KEY"),
        repository=_get(env, "GITHUB_REPOSITORY"),
        model=_get(env, "OPENAI_MODEL", DEFAULT_MODEL),
        openai_api_url=_get(env, "OPENAI_API_URL", DEFAULT_OPENAI_API_URL),
        github_api_url=_get(env, "GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/"),
        label=_get(env, "PROPAGATOR_LABEL", DEFAULT_LABEL),
    )


def validate_config(config):
    """Return a list of fatal configuration problems, empty when usable."""
    problems = []
    if not config.github_token:
        problems.append("GITHUB_TOKEN secret is missing.")
    if not config.repository:
        problems.append("GITHUB_REPOSITORY is not set.")
    elif "/" not in config.repository:
        problems.append(f"GITHUB_REPOSITORY must look like owner/repo, got {config.repository!r}.")
    return problems


def parse_flag(value):
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in ("1", "true", "yes", "y", "on"):
        return True
    if text in ("", "0", "false", "no", "n", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")
