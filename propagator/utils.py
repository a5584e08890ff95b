import re
from collections import namedtuple

import requests

Result = namedtuple("Result", ["ok", "value", "error"])

TEMPERATURE = 0.2
REVIEW_HEADING = "## ⚠️ AI Conflict Analysis ⚠️"

PROMPT_TEMPLATE = """# Merge Conflict Review Instructions
You are an expert Git Conflict Resolution Agent. Your goal is to analyze the merge conflict present in the following Pull Request: #{pr_number}.
The PR attempts to merge the source branch **{source}** into the target branch **{target}**.

Analyze the provided Git conflict markers below. **DO NOT invent file names or line numbers.** Base your analysis strictly on the content provided in the conflict diff.

--- CONFLICT DIFF START ---
{diff}
--- CONFLICT DIFF END ---

Your analysis must include:
1. An explanation of *why* the conflict occurred, mentioning the files and the content lines involved.
2. A recommendation on *how* to resolve the conflict (which change should be kept, or if a hybrid solution is needed).
3. A warning that manual intervention is required.

Generate the output as a detailed Markdown comment to be posted on the PR.
"""


def success(value=None):
    return Result(True, value, None)


def failure(error):
    return Result(False, None, error)


def parse_pr_number(text):
    match = re.search(r"/pull/(\d+)", text or "")
    if match:
        return int(match.group(1))
    return None


def build_prompt(pr_number, source, target, diff=""):
    return PROMPT_TEMPLATE.format(
        pr_number=pr_number, source=source, target=target, diff=diff or ""
    )


def format_review_comment(review):
    return f"{REVIEW_HEADING}\n\n{review}"


def fetch_pr_diff(config, pr_number):
    url = f"{config.github_api_url}/repos/{config.repository}/pulls/{pr_number}"
    headers = {
        "Authorization": f"Bearer {config.github_token}",
        "Accept": "application/vnd.github.v3.diff",
    }
    try:
        response = requests.get(url, headers=headers)
        response.raise_for_status()
    except requests.RequestException as e:
        return failure(str(e))
    return success(response.text)


def send_to_ai(prompt, config):
    payload = {
        "model": config.model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": TEMPERATURE,
    }

    headers = {
        "Authorization": f"Bearer {config.openai_api_key}",
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(config.openai_api_url, headers=headers, json=payload)
        response.raise_for_status()
        result = response.json()
    except (requests.RequestException, ValueError) as e:
        return failure(str(e))

    if not isinstance(result, dict):
        return failure("response was not a JSON object")
    choices = result.get("choices") or []
    if not choices:
        return failure("response contained no choices")
    content = (choices[0].get("message") or {}).get("content")
    if not content:
        return failure("response contained an empty message")
    return success(content)
