"""Per-track read state for the scheduler.

A cursor walks one track's event list and turns it into *segments*: the
span between two events whose delta is longer than the legato
threshold.  Events inside a segment-read scan only update state; the
event that ends the scan commits its delta as the new segment.

The note state a segment plays is the state set by the event that
*ends* it: a note-on closes the silence before it, a velocity-0 event
closes the note before it.  Hence ``velocity == 0`` means sounding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .pitch import TICKS_PER_QUARTER, segment_duration
from .score import KIND_END, KIND_NOTE, KIND_TEMPO, TrackEvent

logger = logging.getLogger(__name__)

LEGATO_THRESHOLDS = (0, 1)


class TempoState:
    """Process-wide tempo: the last tempo marker read from any track wins."""

    def __init__(self, default_tempo: int) -> None:
        if default_tempo <= 0:
            raise ValueError(f"default tempo must be positive, got {default_tempo}")
        self.default_tempo = default_tempo
        self.value: Optional[int] = None
        self._warned_default = False

    def set(self, tempo: int) -> None:
        if tempo <= 0:
            raise ValueError(f"tempo marker must be positive, got {tempo}")
        self.value = tempo

    def current(self) -> int:
        if self.value is not None:
            return self.value
        if not self._warned_default:
            logger.warning(
                "timed segment before any tempo marker; assuming %d us per quarter",
                self.default_tempo,
            )
            self._warned_default = True
        return self.default_tempo


@dataclass
class TrackCursor:
    index: int
    read_position: int = 0
    ended: bool = False
    active_pitch: int = 0  # 0 = nothing played yet
    velocity: int = 0  # last velocity read; 0 = sounding (see module docs)
    ticks: int = 0  # delta of the current segment
    remaining: float = 0.0  # seconds left in the current segment
    sub_remaining: float = 0.0  # seconds left until the next re-trigger
    fresh_beat: bool = False
    retriggers: int = 0  # re-triggers inside the current segment

    @property
    def primed(self) -> bool:
        return self.read_position > 0 or self.ended

    @property
    def sounding(self) -> bool:
        return self.velocity == 0

    @property
    def due(self) -> bool:
        """True once the current segment is used up and the next must be read."""

        return not self.ended and self.remaining <= 0

    def advance(
        self,
        events: Sequence[TrackEvent],
        tempo: TempoState,
        legato: int,
        *,
        ticks_per_quarter: int = TICKS_PER_QUARTER,
    ) -> bool:
        """Read events until the next segment starts.

        Returns True when a new segment was committed.  Does nothing while
        the current segment still has time left.
        """
        if self.ended or self.remaining > 0:
            return False

        while self.read_position < len(events):
            ev = events[self.read_position]
            self.read_position += 1
            self.fresh_beat = True

            if ev.kind == KIND_TEMPO:
                tempo.set(ev.tempo)
            elif ev.kind == KIND_END:
                self.ended = True
                return False
            elif ev.kind == KIND_NOTE:
                if ev.velocity > 0:
                    self.active_pitch = ev.pitch
                self.velocity = ev.velocity

            if ev.delta > legato:
                self.ticks = ev.delta
                self.remaining = segment_duration(tempo.current(), ev.delta, ticks_per_quarter)
                self.sub_remaining = 0.0
                self.retriggers = 0
                return True

        # Ran out of events without an end-of-track marker.
        logger.debug("track %d has no end-of-track marker; treating it as ended", self.index)
        self.ended = True
        return False

    def consume(self, step: float, epsilon: float) -> None:
        """Let ``step`` seconds pass; snap sub-``epsilon`` leftovers to zero."""

        self.remaining -= step
        self.sub_remaining -= step
        if self.remaining < epsilon:
            self.remaining = 0.0
        if self.sub_remaining < epsilon:
            self.sub_remaining = 0.0
