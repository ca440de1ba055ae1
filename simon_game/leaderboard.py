from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_URL = "http://localhost:3002/users"


class LeaderboardError(Exception):
    """The leaderboard service could not be reached or answered with an error."""


class InvalidEmailError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    name: str
    score: int


def leaderboard_url_from_env() -> str:
    return os.environ.get("SIMON_LEADERBOARD_URL", "").strip() or DEFAULT_LEADERBOARD_URL


def name_from_email(email: str) -> str:
    """Public name shown on the board: the part of the email before '@'."""

    cleaned = str(email).strip()
    if "@" not in cleaned:
        raise InvalidEmailError("Enter a valid email address.")
    name = cleaned.split("@", 1)[0]
    if name == "":
        raise InvalidEmailError("Enter a valid email address.")
    return name


def _as_score(value: object) -> int:
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return 0


def normalize_entries(payload: Any) -> list[LeaderboardEntry]:
    """Accept a bare list, {"users": [...]} or {"users": {id: user}}; best score first."""

    users: list[Any]
    if isinstance(payload, list):
        users = payload
    elif isinstance(payload, dict) and isinstance(payload.get("users"), list):
        users = payload["users"]
    elif isinstance(payload, dict) and isinstance(payload.get("users"), dict):
        users = list(payload["users"].values())
    else:
        users = []

    entries: list[LeaderboardEntry] = []
    for user in users:
        if not isinstance(user, dict):
            continue
        name = str(user.get("name") or "---")
        entries.append(LeaderboardEntry(name=name, score=_as_score(user.get("score"))))
    entries.sort(key=lambda e: e.score, reverse=True)
    return entries


class LeaderboardClient:
    """Thin HTTP client for the score service. No retries."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_s: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = base_url or leaderboard_url_from_env()
        self._timeout_s = float(timeout_s)
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def fetch_entries(self) -> list[LeaderboardEntry]:
        try:
            response = self._session.get(self._url, timeout=self._timeout_s)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as exc:
            logger.warning("could not load leaderboard from %s: %s", self._url, exc)
            raise LeaderboardError(f"Could not load the leaderboard from {self._url}") from exc
        except ValueError as exc:
            raise LeaderboardError("The leaderboard answered with invalid JSON") from exc
        return normalize_entries(payload)

    def register_score(self, email: str, score: int) -> LeaderboardEntry:
        entry = LeaderboardEntry(name=name_from_email(email), score=int(score))
        try:
            response = self._session.post(
                self._url,
                json={"name": entry.name, "score": entry.score},
                timeout=self._timeout_s,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning("could not register score %d: %s", entry.score, exc)
            raise LeaderboardError("Saving failed. Check that the server is reachable.") from exc
        logger.info("registered score %d for %s", entry.score, entry.name)
        return entry
