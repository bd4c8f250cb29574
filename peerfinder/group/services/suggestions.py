"""AI-assisted member suggestions for new study groups, using Anthropic Claude."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

import anthropic
from flask import current_app

from peerfinder.constants import AI_SUGGESTION_MAX_ATTEMPTS
from peerfinder.errors import ExternalServiceError

SYSTEM_PROMPT = """You help university students form small study groups.
You are given a course, the profile of the student asking for a group and a
list of candidate classmates who are also looking for study partners in
that course. Pick the candidates who would study well with the requester,
preferring compatible availability, similar year and shared courses.

Only pick IDs from the candidate list. Answer with a single JSON object and
nothing else, in this exact shape:
{"memberIds": ["<id>", ...], "rationale": "<one or two sentences>"}"""

PROFILE_KEYS = ("name", "year", "availability", "bio", "coursesSeeking")

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class SuggestionError(ExternalServiceError):
    """Raised when no usable member suggestion could be obtained."""

    def __init__(self, message="The AI member suggestion service failed."):
        super().__init__(message)


@dataclass
class MemberSuggestion:
    """Members proposed for a new group."""

    member_ids: list[str]
    rationale: str = ""
    raw: str = field(default="", repr=False)


def _profile_summary(user: dict[str, Any]) -> dict[str, Any]:
    summary = {key: user[key] for key in PROFILE_KEYS if user.get(key)}
    summary["id"] = user.get("id")
    return summary


def parse_suggestion(
    text: str,
    pool_ids: list[str],
    requester_id: str | None,
    count: int,
) -> MemberSuggestion | None:
    """Pull the suggestion out of a model reply.

    Returns None when the reply holds no usable object. IDs outside the
    pool, duplicates and the requester are dropped and the list is cut to
    ``count``.
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("memberIds"), list):
        return None

    allowed = set(pool_ids)
    member_ids: list[str] = []
    for member_id in data["memberIds"]:
        if not isinstance(member_id, str) or member_id not in allowed:
            continue
        if member_id == requester_id or member_id in member_ids:
            continue
        member_ids.append(member_id)
    member_ids = member_ids[:count]
    if not member_ids:
        return None

    rationale = data.get("rationale")
    return MemberSuggestion(
        member_ids=member_ids,
        rationale=rationale if isinstance(rationale, str) else "",
        raw=text,
    )


class MemberSuggester:
    """Proposes group members from a candidate pool with Claude."""

    def __init__(self, api_key: str | None, model: str, client: Any = None):
        if client is None:
            if not api_key:
                raise SuggestionError("ANTHROPIC_API_KEY is not configured.")
            client = anthropic.Anthropic(api_key=api_key)
        self.client = client
        self.model = model

    def _build_prompt(
        self,
        course: str,
        requester_profile: dict[str, Any],
        candidate_pool: list[dict[str, Any]],
        count: int,
    ) -> str:
        candidates = [_profile_summary(user) for user in candidate_pool]
        return (
            f"Course: {course}\n"
            f"Number of members to pick: {count}\n\n"
            f"Requester:\n{json.dumps(_profile_summary(requester_profile))}\n\n"
            f"Candidates:\n{json.dumps(candidates)}"
        )

    def _ask(self, prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=500,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )

    def suggest_members(
        self,
        course: str,
        requester_profile: dict[str, Any],
        candidate_pool: list[dict[str, Any]],
        count: int,
    ) -> MemberSuggestion:
        """Ask the model for up to ``count`` members from ``candidate_pool``.

        An unusable reply is retried once.

        Raises:
            SuggestionError: If the API call fails or no usable reply came back.
        """
        if count < 1 or not candidate_pool:
            raise SuggestionError("There are no classmates to suggest for this course.")

        pool_ids = [user["id"] for user in candidate_pool if user.get("id")]
        prompt = self._build_prompt(course, requester_profile, candidate_pool, count)
        for attempt in range(1, AI_SUGGESTION_MAX_ATTEMPTS + 1):
            try:
                text = self._ask(prompt)
            except anthropic.APIError as e:
                current_app.logger.error(f"Member suggestion request failed: {e}")
                raise SuggestionError() from e

            suggestion = parse_suggestion(
                text, pool_ids, requester_profile.get("id"), count
            )
            if suggestion is not None:
                return suggestion
            current_app.logger.warning(
                f"Unusable member suggestion for {course} "
                f"(attempt {attempt} of {AI_SUGGESTION_MAX_ATTEMPTS})"
            )

        raise SuggestionError("The AI member suggestion could not be understood.")


def get_member_suggester() -> MemberSuggester:
    """Build a suggester from the app configuration."""
    return MemberSuggester(
        api_key=current_app.config.get("ANTHROPIC_API_KEY"),
        model=current_app.config["AI_SUGGESTION_MODEL"],
    )
