"""Pitch and tick arithmetic.

Pitches are MIDI note numbers (0-127).  Tempo is the MIDI meta value in
microseconds per quarter note; tick counts assume a fixed resolution of
480 ticks per quarter note unless told otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass

TICKS_PER_QUARTER = 480
DEFAULT_TEMPO_US = 500000  # 120 BPM

A4_PITCH = 69
C5_PITCH = 72
A4_HZ = 440.0


@dataclass(frozen=True)
class Tuning:
    """Reference tone for the equal-tempered frequency formula.

    Older run files used C5 (72) as the reference index instead of A4
    (69); both are accepted.
    """

    reference_pitch: int = A4_PITCH
    reference_hz: float = A4_HZ

    def frequency(self, pitch: int) -> float:
        return self.reference_hz * 2 ** ((pitch - self.reference_pitch) / 12)

    def period(self, pitch: int) -> float:
        """One oscillation of ``pitch`` in seconds."""

        return 1.0 / self.frequency(pitch)


STANDARD_TUNING = Tuning()


def frequency(pitch: int, tuning: Tuning = STANDARD_TUNING) -> float:
    return tuning.frequency(pitch)


def oscillation_period(pitch: int, tuning: Tuning = STANDARD_TUNING) -> float:
    return tuning.period(pitch)


def segment_duration(
    tempo_us: int,
    ticks: int,
    ticks_per_quarter: int = TICKS_PER_QUARTER,
) -> float:
    """Convert a tick delta to seconds at ``tempo_us`` microseconds per quarter."""

    return tempo_us / 1_000_000 / ticks_per_quarter * ticks
