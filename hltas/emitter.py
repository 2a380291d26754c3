"""Frame-bulk line writer.

One :class:`OutputRecord` becomes one pipe-delimited frame bulk::

    ----------|------|------|<frametime>|-|-|<repeat>|<command>

``USE`` and ``DUCKTAP`` set their flag character instead of writing a
command, and such lines end after the repeat count.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import IO, Iterable

from .actions import NO_ACTION, Action, ActionKind

# Smallest frametime the TAS engine still treats as a frame.
ZERO_FRAMETIME = 0.000000000001

STRAFE_FIELD = "----------"
DUCKTAP_STRAFE_FIELD = "-----d----"
MOVE_FIELD = "------"
ACTION_FIELD = "------"
USE_ACTION_FIELD = "--u---"


@dataclass(frozen=True)
class OutputRecord:
    frametime: float
    repeat: int = 1
    action: Action = NO_ACTION

    @property
    def is_wait(self) -> bool:
        return self.action.kind == ActionKind.NONE


def format_frametime(value: float) -> str:
    """Shortest round-trip decimal for ``value``, never in exponent form."""

    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_record(record: OutputRecord) -> str:
    frametime = format_frametime(record.frametime)
    kind = record.action.kind
    if kind == ActionKind.DUCKTAP:
        return f"{DUCKTAP_STRAFE_FIELD}|{MOVE_FIELD}|{ACTION_FIELD}|{frametime}|-|-|{record.repeat}"
    if kind == ActionKind.USE:
        return f"{STRAFE_FIELD}|{MOVE_FIELD}|{USE_ACTION_FIELD}|{frametime}|-|-|{record.repeat}"
    return (
        f"{STRAFE_FIELD}|{MOVE_FIELD}|{ACTION_FIELD}|{frametime}|-|-|{record.repeat}"
        f"|{record.action.command_text()}"
    )


def write_records(records: Iterable[OutputRecord], sink: IO[str]) -> int:
    """Write one line per record to ``sink``; return the number written."""

    count = 0
    for record in records:
        sink.write(format_record(record))
        sink.write("\n")
        count += 1
    return count
