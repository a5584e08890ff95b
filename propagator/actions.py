import os
from contextlib import contextmanager


def escape(message):
    # Workflow commands are line based; multi-line text must be encoded
    return (
        str(message)
        .replace("%", "%25")
        .replace("\r", "%0D")
        .replace("\n", "%0A")
    )


def info(message):
    print(message)


def debug(message):
    print(f"::debug::{escape(message)}")


def warning(message):
    print(f"::warning::{escape(message)}")


def error(message):
    print(f"::error::{escape(message)}")


def set_failed(message):
    error(message)


@contextmanager
def group(title):
    print(f"::group::{title}")
    try:
        yield
    finally:
        print("::endgroup::")


def set_output(name, value, env=None):
    env = os.environ if env is None else env
    path = env.get("GITHUB_OUTPUT")
    if not path:
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{name}={value}\n")
    return True
