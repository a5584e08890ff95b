import argparse
import sys
from collections import namedtuple

import requests
from github import Auth, Github, GithubException

from propagator import actions
from propagator.config import load_config, parse_flag, validate_config
from propagator.utils import (
    build_prompt,
    failure,
    fetch_pr_diff,
    format_review_comment,
    parse_pr_number,
    send_to_ai,
    success,
)

Outcome = namedtuple("Outcome", ["success", "pr_number", "created", "reviewed"])

# PyGithub surfaces transport faults as raw requests exceptions
API_ERRORS = (GithubException, requests.RequestException)


def get_repo(config):
    # No retries; each failure surfaces once
    g = Github(auth=Auth.Token(config.github_token), base_url=config.github_api_url, retry=None)
    try:
        return success(g.get_repo(config.repository))
    except API_ERRORS as e:
        return failure(str(e))


def pr_title(source, target):
    return f"Propagate: {source} → {target}"


def pr_body(source, target, is_conflict):
    if is_conflict:
        return f"Auto PR: **{source}** to **{target}**.\n\n⚠️ **MERGE CONFLICTS DETECTED** ⚠️"
    return f"Auto PR: **{source}** to **{target}**.\n\n✅ **MERGE SUCCESSFUL** ✅"


def find_existing_pr(repo, target, merge_branch):
    owner = repo.full_name.split("/")[0]
    try:
        pulls = repo.get_pulls(state="open", base=target, head=f"{owner}:{merge_branch}")
        for pr in pulls:
            return success(pr.number)
    except API_ERRORS as e:
        return failure(str(e))
    return success(None)


def create_pr(repo, source, target, merge_branch, is_conflict):
    try:
        pr = repo.create_pull(
            base=target,
            head=merge_branch,
            title=pr_title(source, target),
            body=pr_body(source, target, is_conflict),
        )
    except API_ERRORS as e:
        return failure(str(e))
    return success(pr)


def pr_number_of(pr):
    number = getattr(pr, "number", None)
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return parse_pr_number(getattr(pr, "html_url", None))


def add_label(pr, label):
    try:
        pr.add_to_labels(label)
    except API_ERRORS as e:
        return failure(str(e))
    return success(label)


def post_comment(repo, pr_number, body):
    try:
        comment = repo.get_pull(pr_number).create_issue_comment(body)
    except API_ERRORS as e:
        return failure(str(e))
    return success(comment)


def resolve_pr(repo, config, source, target, merge_branch, is_conflict):
    """Reuse the open PR for merge_branch -> target or open a new one.

    Returns a Result whose value is ``(pr_number, created)``. A failed
    result means the PR could not be created and the run must stop.
    """
    existing = find_existing_pr(repo, target, merge_branch)
    if not existing.ok:
        actions.warning(f"Error checking existing PRs: {existing.error}")
    elif existing.value is not None:
        actions.info(f"Existing PR found: #{existing.value}")
        return success((existing.value, False))

    created = create_pr(repo, source, target, merge_branch, is_conflict)
    if not created.ok:
        actions.error(f"Failed to create PR: {created.error}")
        return created

    pr = created.value
    pr_number = pr_number_of(pr)
    if pr_number is None:
        actions.warning("PR created but could not parse number from response.")
        actions.debug(repr(pr))
        return success((None, True))

    actions.info(f"PR successfully created: #{pr_number}")
    actions.info(f"Adding '{config.label}' label...")
    labeled = add_label(pr, config.label)
    if not labeled.ok:
        actions.warning(f"Failed to add label to PR #{pr_number}: {labeled.error}")
    return success((pr_number, True))


def review_conflict(repo, config, pr_number, source, target):
    """Ask the model to explain the conflict and post the answer on the PR.

    Never raises; every failure is reported as a warning and the returned
    Result says whether a comment was posted.
    """
    diff = fetch_pr_diff(config, pr_number)
    if diff.ok:
        actions.info(f"Successfully fetched diff content for PR #{pr_number}.")
    else:
        actions.warning(f"Failed to fetch PR diff for AI analysis: {diff.error}")

    prompt = build_prompt(pr_number, source, target, diff.value if diff.ok else "")
    actions.info("Sending conflict prompt to the model...")
    review = send_to_ai(prompt, config)
    if not review.ok:
        actions.warning(f"Model API call failed during conflict review: {review.error}")
        return review

    posted = post_comment(repo, pr_number, format_review_comment(review.value))
    if not posted.ok:
        actions.warning(f"Failed to post AI review to PR #{pr_number}: {posted.error}")
        return posted

    actions.info(f"AI review posted to PR #{pr_number}.")
    return success(pr_number)


def run(config, source, target, merge_branch, is_conflict, repo=None):
    problems = validate_config(config)
    if problems:
        for problem in problems:
            actions.set_failed(problem)
        return Outcome(False, None, False, False)

    if not config.openai_api_key:
        # The warning is emitted once, below, and only when a review was wanted
        actions.debug("OPENAI_API_KEY secret is missing. AI conflict review will be skipped.")

    if repo is None:
        connected = get_repo(config)
        if not connected.ok:
            actions.set_failed(f"Could not access {config.repository}: {connected.error}")
            return Outcome(False, None, False, False)
        repo = connected.value

    with actions.group("Create Pull Request"):
        resolved = resolve_pr(repo, config, source, target, merge_branch, is_conflict)
    if not resolved.ok:
        actions.set_failed(f"PR creation failed: {resolved.error}")
        return Outcome(False, None, False, False)

    pr_number, created = resolved.value
    if pr_number is not None:
        actions.set_output("pr-number", pr_number)

    reviewed = False
    if is_conflict and pr_number is not None and config.openai_api_key:
        with actions.group("🤖 Triggering AI Conflict Review"):
            reviewed = review_conflict(repo, config, pr_number, source, target).ok
    elif is_conflict and not config.openai_api_key:
        actions.warning("Merge conflict detected, but OPENAI_API_KEY is missing. Skipping AI review.")

    return Outcome(True, pr_number, created, reviewed)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Open or reuse the PR that propagates a merge branch")
    parser.add_argument("--source", required=True, help="Branch that was merged")
    parser.add_argument("--target", required=True, help="Branch the merge lands in")
    parser.add_argument("--merge-branch", required=True, help="Branch holding the attempted merge")
    parser.add_argument("--conflict", type=parse_flag, default=False, help="Whether the merge produced conflicts (true/false)")
    return parser.parse_args(argv)


def main(argv=None, env=None):
    args = parse_args(argv)
    config = load_config(env)
    outcome = run(config, args.source, args.target, args.merge_branch, args.conflict)
    if not outcome.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
