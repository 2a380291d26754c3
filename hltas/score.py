"""Read Standard MIDI Files into per-track event streams.

Each MIDI track becomes an immutable list of :class:`TrackEvent`.  Only
three message kinds carry meaning for scheduling (tempo, end of track,
note state); everything else is kept as ``other`` so its delta still
counts toward segment boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

import mido

from .pitch import TICKS_PER_QUARTER

KIND_TEMPO = "tempo"
KIND_END = "end"
KIND_NOTE = "note"
KIND_OTHER = "other"


@dataclass(frozen=True)
class TrackEvent:
    """One event, timed by the ticks elapsed since the previous event."""

    kind: str
    delta: int = 0
    pitch: int = 0
    velocity: int = 0
    tempo: int = 0  # microseconds per quarter note (tempo events only)

    @classmethod
    def note(cls, pitch: int, velocity: int, delta: int = 0) -> "TrackEvent":
        return cls(kind=KIND_NOTE, delta=delta, pitch=pitch, velocity=velocity)

    @classmethod
    def set_tempo(cls, tempo: int, delta: int = 0) -> "TrackEvent":
        return cls(kind=KIND_TEMPO, delta=delta, tempo=tempo)

    @classmethod
    def end(cls, delta: int = 0) -> "TrackEvent":
        return cls(kind=KIND_END, delta=delta)

    @classmethod
    def other(cls, delta: int = 0) -> "TrackEvent":
        return cls(kind=KIND_OTHER, delta=delta)


@dataclass(frozen=True)
class Score:
    tracks: List[List[TrackEvent]]
    ticks_per_beat: int = TICKS_PER_QUARTER

    @property
    def track_count(self) -> int:
        return len(self.tracks)


def event_from_message(msg: mido.Message | mido.MetaMessage) -> TrackEvent:
    delta = int(msg.time)
    if msg.type == "set_tempo":
        return TrackEvent.set_tempo(int(msg.tempo), delta)
    if msg.type == "end_of_track":
        return TrackEvent.end(delta)
    if msg.type == "note_on":
        return TrackEvent.note(msg.note, msg.velocity, delta)
    if msg.type == "note_off":
        # Same state as note_on with velocity 0.
        return TrackEvent.note(msg.note, 0, delta)
    return TrackEvent.other(delta)


def score_from_midi(mid: mido.MidiFile) -> Score:
    tracks = [[event_from_message(msg) for msg in track] for track in mid.tracks]
    return Score(tracks=tracks, ticks_per_beat=mid.ticks_per_beat)


def load_score(path: Path | str) -> Score:
    midi_path = Path(path).expanduser().resolve()
    return score_from_midi(mido.MidiFile(str(midi_path)))


def describe_score(score: Score) -> str:
    """Return a per-track listing of every event, one line each."""

    lines: List[str] = []
    for track_idx, events in enumerate(score.tracks):
        lines.append(f"Track {track_idx}")
        for event_idx, ev in enumerate(events):
            if ev.kind == KIND_NOTE:
                detail = f"note pitch={ev.pitch} vel={ev.velocity}"
            elif ev.kind == KIND_TEMPO and ev.tempo > 0:
                detail = f"tempo {ev.tempo}us ({mido.tempo2bpm(ev.tempo):.1f} BPM)"
            elif ev.kind == KIND_TEMPO:
                detail = f"tempo {ev.tempo}us"
            else:
                detail = ev.kind
            lines.append(f"{event_idx} : delta={ev.delta} {detail}")
    return "\n".join(lines)
