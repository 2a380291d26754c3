"""Convert multi-track MIDI scores into HLTAS frame-bulk scripts."""

from .actions import (  # noqa: F401
    NO_ACTION,
    STOP_ACTION,
    Action,
    ActionKind,
    ActionTable,
    EmitInfo,
)
from .cursor import TempoState, TrackCursor  # noqa: F401
from .emitter import (  # noqa: F401
    ZERO_FRAMETIME,
    OutputRecord,
    format_frametime,
    format_record,
    write_records,
)
from .pitch import (  # noqa: F401
    DEFAULT_TEMPO_US,
    TICKS_PER_QUARTER,
    Tuning,
    frequency,
    oscillation_period,
    segment_duration,
)
from .run_spec import RunSpec, load_run_spec, parse_run_spec  # noqa: F401
from .scheduler import Scheduler, SchedulerStats, TieBreak, schedule  # noqa: F401
from .score import Score, TrackEvent, describe_score, load_score, score_from_midi  # noqa: F401
