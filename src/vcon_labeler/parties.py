"""The two channel parties of a session."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

from .models import LEFT, PARTY_ROLES, RIGHT, Party

logger = logging.getLogger("vcon_labeler")


def default_parties() -> List[Party]:
    return [
        Party(id="party-1", role="agent", name="Agent"),
        Party(id="party-2", role="customer", name="Customer"),
    ]


def _check_role(role: str) -> str:
    if role not in PARTY_ROLES:
        raise ValueError(f"Unknown party role '{role}'. Allowed: {list(PARTY_ROLES)}")
    return role


class PartyRegistry:
    """Holds the left (channel 0) and right (channel 1) parties.

    Parties are never deleted; reconfiguration replaces both at once.
    """

    def __init__(self, left: Optional[Party] = None, right: Optional[Party] = None) -> None:
        defaults = default_parties()
        self._parties = [left or defaults[0], right or defaults[1]]
        self.revision = 0

    @property
    def left(self) -> Party:
        return self._parties[LEFT]

    @property
    def right(self) -> Party:
        return self._parties[RIGHT]

    def all(self) -> List[Party]:
        return list(self._parties)

    def for_channel(self, channel: Optional[int]) -> Optional[Party]:
        if channel in (LEFT, RIGHT):
            return self._parties[channel]
        return None

    def by_id(self, party_id: Optional[str]) -> Optional[Party]:
        for party in self._parties:
            if party.id == party_id:
                return party
        return None

    def update(
        self,
        channel: int,
        name: Optional[str] = None,
        role: Optional[str] = None,
        uri: Optional[str] = None,
    ) -> Party:
        if channel not in (LEFT, RIGHT):
            raise ValueError(f"Channel must be 0 or 1, got {channel!r}")
        current = self._parties[channel]
        changes = {}
        if name is not None:
            changes["name"] = name
        if role is not None:
            changes["role"] = _check_role(role)
        if uri is not None:
            changes["uri"] = uri
        if changes:
            self._parties[channel] = replace(current, **changes)
            self.revision += 1
            logger.debug("Party %s updated: %s", current.id, changes)
        return self._parties[channel]

    def replace(self, left: Party, right: Party) -> None:
        _check_role(left.role)
        _check_role(right.role)
        self._parties = [left, right]
        self.revision += 1
