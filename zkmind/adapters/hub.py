"""
Hub adapters - Where match starts and outcomes are reported.

- RecordingHub: keeps an in-memory log (tests, local play)
- HttpHub: POSTs JSON to a remote match hub
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field

import httpx

from ..ports import Hub, HubError

logger = logging.getLogger(__name__)


@dataclass
class HubStart:
    session_id: int
    game_identifier: str
    codemaker: str
    codebreaker: str
    stake_codemaker: int
    stake_codebreaker: int


@dataclass
class RecordingHub(Hub):
    """
    Hub that records every call.

    end_count() and last_outcome() mirror what a real hub would expose
    for auditing settlement.
    """
    starts: list[HubStart] = field(default_factory=list)
    ends: list[tuple[int, bool]] = field(default_factory=list)

    def start(
        self,
        session_id: int,
        game_identifier: str,
        codemaker: str,
        codebreaker: str,
        stake_codemaker: int,
        stake_codebreaker: int,
    ) -> None:
        self.starts.append(HubStart(
            session_id=session_id,
            game_identifier=game_identifier,
            codemaker=codemaker,
            codebreaker=codebreaker,
            stake_codemaker=stake_codemaker,
            stake_codebreaker=stake_codebreaker,
        ))

    def end(self, session_id: int, codemaker_won: bool) -> None:
        self.ends.append((session_id, codemaker_won))

    def end_count(self, session_id: int) -> int:
        return sum(1 for sid, _ in self.ends if sid == session_id)

    def last_outcome(self, session_id: int) -> bool | None:
        for sid, codemaker_won in reversed(self.ends):
            if sid == session_id:
                return codemaker_won
        return None


class HttpHub(Hub):
    """
    Hub reached over HTTP.

    POST {base_url}/start and {base_url}/end with JSON bodies. Any
    transport error or non-2xx status raises HubError.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            self._client.close()

    def start(
        self,
        session_id: int,
        game_identifier: str,
        codemaker: str,
        codebreaker: str,
        stake_codemaker: int,
        stake_codebreaker: int,
    ) -> None:
        self._post("start", {
            "session_id": session_id,
            "game_id": game_identifier,
            "player1": codemaker,
            "player2": codebreaker,
            # stakes travel as decimal strings
            "player1_points": str(stake_codemaker),
            "player2_points": str(stake_codebreaker),
        })

    def end(self, session_id: int, codemaker_won: bool) -> None:
        self._post("end", {"session_id": session_id, "player1_won": codemaker_won})

    def _post(self, route: str, body: dict):
        url = f"{self.base_url}/{route}"
        try:
            response = self._client.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Hub call %s failed: %s", url, e)
            raise HubError(f"hub {route} failed: {e}") from e
