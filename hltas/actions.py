"""In-game actions a track can trigger.

Each track of a score is bound to exactly one :class:`Action`.  Most
actions are plain console commands written into the trailing command
field of a frame bulk; two of them (``USE`` and ``DUCKTAP``) set a flag
in the movement/action fields instead.

Two kinds are stateful when resolved through an :class:`ActionTable`:

  SWITCH_GROUP -- alternates between ``slot2`` and ``slot1`` on every
                  resolution, whichever track asks.
  MARKER       -- diagnostic ``echo N`` counter; not bound to tracks,
                  drawn from :meth:`ActionTable.next_marker`.

The table owns that state, so two tables never influence each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional, Sequence


class ActionKind(Enum):
    NONE = auto()
    FLASHLIGHT = auto()
    SWITCH_SCROLL = auto()
    SWITCH_GROUP = auto()
    USE = auto()
    DUCKTAP = auto()
    SPEAK_SPRAYER = auto()
    SPEAK_BODYSPLAT = auto()
    SPEAK_MOVESELECT_SOFT = auto()
    STOPSOUND = auto()
    ATTACK = auto()
    SPEAK_MOVESELECT = auto()
    EMIT_SOUND = auto()
    EMIT_SOUND_DYNAMIC = auto()
    MARKER = auto()


# Kinds whose command text never changes.
COMMAND_TEXT: Dict[ActionKind, str] = {
    ActionKind.NONE: "",
    ActionKind.FLASHLIGHT: "impulse 100",
    ActionKind.SPEAK_SPRAYER: "speak player/sprayer",
    ActionKind.SPEAK_BODYSPLAT: 'speak "common/bodysplat(v30)"',
    ActionKind.SPEAK_MOVESELECT_SOFT: 'speak "common/wpn_moveselect(v30)"',
    ActionKind.STOPSOUND: "stopsound",
    ActionKind.ATTACK: "+attack; wait; -attack",
    ActionKind.SPEAK_MOVESELECT: 'speak "common/wpn_moveselect"',
}

MAX_SLOT = 5
GROUP_SLOTS = (1, 2)

# Held actions: re-issuing them mid-note would toggle the state back.
SUSTAINED_KINDS = frozenset({ActionKind.DUCKTAP})
# Single-strike actions get a priming press before the real one.
PRIMED_KINDS = frozenset({ActionKind.ATTACK})


@dataclass(frozen=True)
class EmitInfo:
    """Arguments of ``bxt_emit_sound``: <sound> <channel> [volume] [from]."""

    sound: str
    channel: int
    volume: float
    source: int  # entity index the sound is emitted from

    def arguments(self) -> str:
        volume = self.volume
        if isinstance(volume, float) and volume.is_integer():
            volume = int(volume)  # 1.0 is written as 1
        return f"{self.sound} {self.channel} {volume} {self.source} 0 0.8 0 100"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    slot: Optional[int] = None
    emit: Optional[EmitInfo] = None
    number: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind == ActionKind.SWITCH_SCROLL and self.slot is None:
            raise ValueError("switch_scroll requires a slot")
        if self.kind in (ActionKind.EMIT_SOUND, ActionKind.EMIT_SOUND_DYNAMIC) and self.emit is None:
            raise ValueError(f"{self.kind.name.lower()} requires emit arguments")
        if self.kind == ActionKind.MARKER and self.number is None:
            raise ValueError("marker requires a number")

    @classmethod
    def simple(cls, kind: ActionKind) -> "Action":
        return cls(kind=kind)

    @classmethod
    def switch_scroll(cls, slot: int) -> "Action":
        return cls(kind=ActionKind.SWITCH_SCROLL, slot=slot)

    @classmethod
    def emit_sound(cls, info: EmitInfo, *, dynamic: bool = False) -> "Action":
        kind = ActionKind.EMIT_SOUND_DYNAMIC if dynamic else ActionKind.EMIT_SOUND
        return cls(kind=kind, emit=info)

    @classmethod
    def marker(cls, number: int) -> "Action":
        return cls(kind=ActionKind.MARKER, number=number)

    @property
    def is_sustained(self) -> bool:
        return self.kind in SUSTAINED_KINDS

    @property
    def is_primed(self) -> bool:
        return self.kind in PRIMED_KINDS

    def command_text(self) -> str:
        """Text for the trailing command field.

        ``SWITCH_GROUP`` has no text of its own; it must be resolved
        through an :class:`ActionTable` first.
        """
        if self.kind in COMMAND_TEXT:
            return COMMAND_TEXT[self.kind]
        if self.kind == ActionKind.SWITCH_SCROLL:
            return f"slot{self.slot}" if 0 <= self.slot <= MAX_SLOT else ""
        if self.kind == ActionKind.EMIT_SOUND:
            return f'bxt_emit_sound "{self.emit.arguments()}"'
        if self.kind == ActionKind.EMIT_SOUND_DYNAMIC:
            return f'bxt_emit_sound_dynamic "{self.emit.arguments()}"'
        if self.kind == ActionKind.MARKER:
            return f"echo {self.number}"
        raise ValueError(f"{self.kind.name.lower()} must be resolved before formatting")


NO_ACTION = Action.simple(ActionKind.NONE)
STOP_ACTION = Action.simple(ActionKind.STOPSOUND)


class ActionTable:
    """Fixed track -> action binding plus the state of the stateful kinds."""

    def __init__(self, actions: Sequence[Action]) -> None:
        for idx, action in enumerate(actions):
            if action.kind == ActionKind.MARKER:
                raise ValueError(f"actions[{idx}]: marker is reserved for diagnostics")
        self._actions: List[Action] = list(actions)
        self._group_slot = GROUP_SLOTS[0]
        self._marker_count = 0

    def __len__(self) -> int:
        return len(self._actions)

    def __getitem__(self, track: int) -> Action:
        return self._actions[track]

    def check_track_count(self, track_count: int) -> None:
        if len(self._actions) != track_count:
            raise ValueError(
                f"action table has {len(self._actions)} entries but the score has "
                f"{track_count} tracks"
            )

    def resolve(self, track: int) -> Action:
        """Return the concrete action to emit for ``track`` right now."""

        action = self._actions[track]
        if action.kind == ActionKind.SWITCH_GROUP:
            return self._next_group_slot()
        return action

    def _next_group_slot(self) -> Action:
        self._group_slot = self._group_slot % len(GROUP_SLOTS) + 1
        return Action.switch_scroll(self._group_slot)

    def next_marker(self) -> Action:
        self._marker_count += 1
        return Action.marker(self._marker_count)
