"""Voice-state reconciliation.

The server reports speaking, muted and deafened flags as maps of
`user_id -> bool`. Each map is a partial delta: users it does not name keep
their mirrored flags. Reconciliation compares each observation to the
mirror, flips only the flags that differ and reports the users whose flag
changed, in observation order.
"""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping
from dataclasses import field, dataclass

from roomwire.state.models import ActiveRoom, ActiveUser

# wire key -> observation attribute
_VOICE_MAPS = (
    ("activeSpeakerMap", "speaking"),
    ("muteMap", "muted"),
    ("deafMap", "deafened"),
)


@dataclass(frozen=True, slots=True)
class VoiceObservation:
    """Observed flags for one user. None leaves the mirrored flag untouched."""

    speaking: bool | None = None
    muted: bool | None = None
    deafened: bool | None = None


@dataclass(slots=True)
class VoiceStateChanges:
    speaking: list[ActiveUser] = field(default_factory=list)
    muted: list[ActiveUser] = field(default_factory=list)
    deafened: list[ActiveUser] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.speaking or self.muted or self.deafened)

    def without(self, user_id: str) -> VoiceStateChanges:
        return VoiceStateChanges(
            speaking=[u for u in self.speaking if u.id != user_id],
            muted=[u for u in self.muted if u.id != user_id],
            deafened=[u for u in self.deafened if u.id != user_id],
        )


def observations_from_maps(data: Mapping[str, Any]) -> dict[str, VoiceObservation]:
    """Collect per-user observations from the voice maps `data` carries.

    Only users named by a map are observed, and only for that map's flag.
    """
    flags: dict[str, dict[str, bool]] = {}
    for key, attr in _VOICE_MAPS:
        voice_map = data.get(key)
        if not isinstance(voice_map, dict):
            continue
        for user_id, value in voice_map.items():
            flags.setdefault(str(user_id), {})[attr] = bool(value)
    return {user_id: VoiceObservation(**observed) for user_id, observed in flags.items()}


def reconcile_voice_states(room: ActiveRoom, observations: Mapping[str, VoiceObservation]) -> VoiceStateChanges:
    changes = VoiceStateChanges()
    for user_id, observed in observations.items():
        user = room.get_user(user_id)
        if user is None:
            continue
        voice = user.voice
        if observed.speaking is not None and observed.speaking != voice.speaking:
            voice.speaking = observed.speaking
            changes.speaking.append(user)
        if observed.muted is not None and observed.muted != voice.muted:
            voice.muted = observed.muted
            changes.muted.append(user)
        if observed.deafened is not None and observed.deafened != voice.deafened:
            voice.deafened = observed.deafened
            changes.deafened.append(user)
    return changes


def reconcile_from_packet(room: ActiveRoom, data: Mapping[str, Any]) -> VoiceStateChanges:
    """Apply whichever voice maps `data` carries to `room`."""
    return reconcile_voice_states(room, observations_from_maps(data))


__all__ = [
    "VoiceObservation",
    "VoiceStateChanges",
    "observations_from_maps",
    "reconcile_voice_states",
    "reconcile_from_packet",
]
