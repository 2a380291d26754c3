"""Merge N track cursors onto one clock of frame bulks.

The scheduler alternates two phases:

  advance -- round-robin over the tracks; a cursor whose segment is used
             up reads its next segment (see :mod:`hltas.cursor`).
  merge   -- while every live cursor still has segment time left:
               1. trigger every cursor whose sub-interval ran out,
               2. step = sub-interval of the selected cursor (the smallest
                  one, or the highest sounding pitch under HIGHEST_PITCH),
               3. emit a wait bulk of ``step`` seconds,
               4. subtract ``step`` from every cursor, clamping at zero.

A sounding cursor re-triggers once per oscillation period of its pitch
(never past the end of its segment).  A resting cursor emits one
``stopsound`` and waits out the whole segment.

The run ends when every cursor has read its end-of-track marker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List

from .actions import STOP_ACTION, ActionTable
from .cursor import LEGATO_THRESHOLDS, TempoState, TrackCursor
from .emitter import ZERO_FRAMETIME, OutputRecord
from .pitch import DEFAULT_TEMPO_US, STANDARD_TUNING, TICKS_PER_QUARTER, Tuning
from .score import Score

logger = logging.getLogger(__name__)

# Leftover time below this is floating-point drift, not music.
TIME_EPSILON = 1e-9
DEFAULT_MAX_RETRIGGERS = 4096


class TieBreak(Enum):
    """How the merge step picks the cursor that sets the next step."""

    LOWEST_REMAINDER = "lowest_remainder"
    HIGHEST_PITCH = "highest_pitch"


@dataclass
class SchedulerStats:
    records: int = 0
    waits: int = 0
    retriggers: int = 0
    rests: int = 0
    suppressed: int = 0
    capped_segments: int = 0
    elapsed: float = 0.0  # seconds covered by wait bulks


class Scheduler:
    def __init__(
        self,
        score: Score,
        table: ActionTable,
        *,
        legato: int = 1,
        tuning: Tuning = STANDARD_TUNING,
        tie_break: TieBreak = TieBreak.LOWEST_REMAINDER,
        diagnostics: bool = False,
        max_retriggers: int = DEFAULT_MAX_RETRIGGERS,
        default_tempo: int = DEFAULT_TEMPO_US,
        ticks_per_quarter: int = TICKS_PER_QUARTER,
    ) -> None:
        if score.track_count == 0:
            raise ValueError("score has no tracks")
        table.check_track_count(score.track_count)
        if legato not in LEGATO_THRESHOLDS:
            raise ValueError(f"legato must be one of {LEGATO_THRESHOLDS}, got {legato}")
        if max_retriggers < 0:
            raise ValueError("max_retriggers must be >= 0 (0 disables the cap)")
        if ticks_per_quarter <= 0:
            raise ValueError("ticks_per_quarter must be positive")

        self.score = score
        self.table = table
        self.legato = legato
        self.tuning = tuning
        self.tie_break = tie_break
        self.diagnostics = diagnostics
        self.max_retriggers = max_retriggers
        self.ticks_per_quarter = ticks_per_quarter
        self.tempo = TempoState(default_tempo)
        self.cursors: List[TrackCursor] = [TrackCursor(index=i) for i in range(score.track_count)]
        self.stats = SchedulerStats()
        self._next_track = 0
        self._started = False

    def run(self) -> List[OutputRecord]:
        return list(self.records())

    def records(self) -> Iterator[OutputRecord]:
        """Yield every frame bulk of the run, in order.  Single use."""

        if self._started:
            raise RuntimeError("scheduler already ran; build a new one")
        self._started = True

        for record in self._schedule():
            self.stats.records += 1
            yield record

    def _schedule(self) -> Iterator[OutputRecord]:
        while not all(c.ended for c in self.cursors):
            self._advance_round()

            if not all(c.primed for c in self.cursors):
                continue
            if all(c.ended for c in self.cursors):
                break

            while not any(c.due for c in self.cursors):
                yield from self._merge_step()

    def _advance_round(self) -> None:
        idx = self._next_track
        cursor = self.cursors[idx]
        if cursor.advance(
            self.score.tracks[idx],
            self.tempo,
            self.legato,
            ticks_per_quarter=self.ticks_per_quarter,
        ):
            logger.debug(
                "track %d: segment %d ticks (%.6fs) pitch=%d vel=%d",
                idx,
                cursor.ticks,
                cursor.remaining,
                cursor.active_pitch,
                cursor.velocity,
            )
        self._next_track = (idx + 1) % len(self.cursors)

    def _merge_step(self) -> Iterator[OutputRecord]:
        live = [c for c in self.cursors if not c.ended]

        for cursor in live:
            if cursor.sub_remaining > 0:
                continue
            if cursor.active_pitch == 0:
                # Nothing has played on this track yet.
                cursor.sub_remaining = cursor.remaining
            elif cursor.sounding:
                yield from self._trigger(cursor)
            else:
                self.stats.rests += 1
                yield OutputRecord(ZERO_FRAMETIME, 1, STOP_ACTION)
                cursor.sub_remaining = cursor.remaining

        selected = self._select(live)
        step = selected.sub_remaining
        logger.debug("step %.9fs set by track %d", step, selected.index)

        if self.diagnostics:
            yield OutputRecord(ZERO_FRAMETIME, 1, self.table.next_marker())
        self.stats.waits += 1
        self.stats.elapsed += step
        yield OutputRecord(step, 1)

        for cursor in self.cursors:
            cursor.consume(step, TIME_EPSILON)

    def _trigger(self, cursor: TrackCursor) -> Iterator[OutputRecord]:
        bound = self.table[cursor.index]
        if not cursor.fresh_beat and bound.is_sustained:
            self.stats.suppressed += 1
        else:
            action = self.table.resolve(cursor.index)
            if action.is_primed:
                yield OutputRecord(ZERO_FRAMETIME, 1, action)
            yield OutputRecord(ZERO_FRAMETIME, 1, action)

        cursor.fresh_beat = False
        cursor.retriggers += 1
        self.stats.retriggers += 1

        if self.max_retriggers and cursor.retriggers >= self.max_retriggers:
            if cursor.retriggers == self.max_retriggers:
                self.stats.capped_segments += 1
                logger.warning(
                    "track %d: pitch %d hit %d re-triggers in one segment; "
                    "holding the rest of the segment (%.6fs)",
                    cursor.index,
                    cursor.active_pitch,
                    self.max_retriggers,
                    cursor.remaining,
                )
            cursor.sub_remaining = cursor.remaining
        else:
            cursor.sub_remaining = min(self.tuning.period(cursor.active_pitch), cursor.remaining)

    def _select(self, live: List[TrackCursor]) -> TrackCursor:
        # min() keeps the first of equal keys, so ties go to the lowest track index.
        lowest = min(live, key=lambda c: c.sub_remaining)
        if self.tie_break == TieBreak.LOWEST_REMAINDER:
            return lowest
        playing = [c for c in live if c.sounding and c.active_pitch > 0]
        if not playing:
            return lowest
        # Cursors with less time left overshoot; consume() snaps them to zero.
        return min(playing, key=lambda c: (-c.active_pitch, c.sub_remaining, c.index))


def schedule(score: Score, table: ActionTable, **options) -> List[OutputRecord]:
    """Run a fresh :class:`Scheduler` over ``score`` and return its records."""

    return Scheduler(score, table, **options).run()

