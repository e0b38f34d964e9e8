"""Client for the public LeetCode GraphQL API.

Only three read-only queries are used: the public profile (for bio
verification), the recent submission list and the easy problem list.
Network and GraphQL failures are raised as `UpstreamError`.
"""

from __future__ import annotations

import json
import logging
import random
import secrets
from typing import Any

import httpx

from ..errors import UpstreamError

logger = logging.getLogger("edusoft.leetcode")

PROFILE_QUERY = """
query userPublicProfile($username: String!) {
  matchedUser(username: $username) {
    username
    profile {
      realName
      aboutMe
      userAvatar
      ranking
      company
      school
      countryName
      skillTags
      websites
    }
  }
}
"""

RECENT_SUBMISSIONS_QUERY = """
query recentSubmissions($username: String!, $limit: Int!) {
  recentSubmissionList(username: $username, limit: $limit) {
    id
    title
    titleSlug
    statusDisplay
    lang
    timestamp
  }
}
"""

EASY_PROBLEMS_QUERY = """
query problemsetQuestionList($categorySlug: String, $limit: Int, $skip: Int, $filters: QuestionListFilterInput) {
  problemsetQuestionList: questionList(categorySlug: $categorySlug, limit: $limit, skip: $skip, filters: $filters) {
    total: totalNum
    questions: data {
      questionFrontendId
      title
      titleSlug
      difficulty
      isPaidOnly
    }
  }
}
"""

# Well-known free problems used when the problem list cannot be fetched.
FALLBACK_PROBLEMS = [
    {"problem_id": "13", "title": "Roman to Integer", "title_slug": "roman-to-integer", "difficulty": "Easy"},
    {"problem_id": "9", "title": "Palindrome Number", "title_slug": "palindrome-number", "difficulty": "Easy"},
    {"problem_id": "66", "title": "Plus One", "title_slug": "plus-one", "difficulty": "Easy"},
    {"problem_id": "1", "title": "Two Sum", "title_slug": "two-sum", "difficulty": "Easy"},
    {"problem_id": "20", "title": "Valid Parentheses", "title_slug": "valid-parentheses", "difficulty": "Easy"},
    {"problem_id": "21", "title": "Merge Two Sorted Lists", "title_slug": "merge-two-sorted-lists", "difficulty": "Easy"},
]

PROFILE_TEXT_FIELDS = ("aboutMe", "realName", "company", "school", "countryName", "skillTags", "websites")


def generate_verification_code() -> str:
    return f"edusoft-{secrets.token_hex(4)}"


def _normalize(text: str | None) -> str:
    return " ".join((text or "").lower().replace("-", " ").split())


def profile_contains(profile: dict | None, code: str) -> bool:
    """Return True when `code` appears in any text-bearing profile field."""
    if not profile:
        return False
    for field in PROFILE_TEXT_FIELDS:
        value = profile.get(field)
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, dict):
                if any(isinstance(v, str) and code in v for v in item.values()):
                    return True
            elif isinstance(item, str) and code in item:
                return True
    return False


def submission_matches(submission: dict, title_slug: str, title: str | None = None) -> bool:
    """Accepted submission for the given problem.

    An exact `titleSlug` match wins; otherwise titles are compared after
    lower-casing and treating dashes as spaces.
    """
    if submission.get("statusDisplay") != "Accepted":
        return False
    if submission.get("titleSlug") == title_slug:
        return True
    wanted = {_normalize(title_slug), _normalize(title)} - {""}
    seen = {_normalize(submission.get("titleSlug")), _normalize(submission.get("title"))} - {""}
    return bool(wanted & seen)


class LeetCodeClient:
    """Thin synchronous wrapper around the LeetCode GraphQL endpoint."""

    def __init__(self, api_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    def _query(self, query: str, variables: dict[str, Any]) -> dict:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    self.api_url,
                    json={"query": query, "variables": variables},
                    headers={"Content-Type": "application/json", "Referer": "https://leetcode.com"},
                )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("leetcode_request_failed %s", json.dumps({"error": str(exc)}, ensure_ascii=True))
            raise UpstreamError("LeetCode API unavailable") from exc
        if body.get("errors") and not body.get("data"):
            logger.warning("leetcode_graphql_error %s", json.dumps({"errors": body["errors"]}, ensure_ascii=True, default=str))
            raise UpstreamError("LeetCode API returned an error")
        return body.get("data") or {}

    def get_profile(self, username: str) -> dict | None:
        """Return the `profile` block of a public user, or None if unknown."""
        data = self._query(PROFILE_QUERY, {"username": username})
        matched = data.get("matchedUser")
        if not matched:
            return None
        return matched.get("profile") or {}

    def recent_submissions(self, username: str, limit: int = 20) -> list[dict]:
        data = self._query(RECENT_SUBMISSIONS_QUERY, {"username": username, "limit": limit})
        return data.get("recentSubmissionList") or []

    def easy_problems(self, limit: int = 15) -> list[dict]:
        variables = {"categorySlug": "", "skip": 0, "limit": limit, "filters": {"difficulty": "EASY"}}
        data = self._query(EASY_PROBLEMS_QUERY, variables)
        questions = (data.get("problemsetQuestionList") or {}).get("questions") or []
        return [
            {
                "problem_id": str(q.get("questionFrontendId")),
                "title": q.get("title"),
                "title_slug": q.get("titleSlug"),
                "difficulty": (q.get("difficulty") or "Easy").title(),
            }
            for q in questions
            if q.get("titleSlug") and not q.get("isPaidOnly")
        ]

    def select_problems(self, count: int = 3, rng: random.Random | None = None) -> list[dict]:
        """Pick `count` distinct easy problems, falling back to a fixed list."""
        rng = rng or random.Random()
        try:
            pool = self.easy_problems()
        except UpstreamError:
            pool = []
        if len(pool) < count:
            pool = FALLBACK_PROBLEMS
        return [dict(p) for p in rng.sample(pool, count)]
