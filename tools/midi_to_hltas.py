#!/usr/bin/env python3
"""Convert a MIDI file into an HLTAS frame-bulk script.

Each MIDI track is bound to one in-game action by a JSON run spec (one
``actions`` entry per track, in track order).

Examples
--------
Write the script next to the spec's ``output`` path:
    python tools/midi_to_hltas.py song.mid --spec specs/song.json

Override the output and print to stdout:
    python tools/midi_to_hltas.py song.mid --spec specs/song.json -o -

Event dump only:
    python tools/midi_to_hltas.py song.mid --info
"""

from __future__ import annotations

import argparse
import dataclasses
import io
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from hltas.emitter import write_records
from hltas.run_spec import RunSpec, load_run_spec
from hltas.scheduler import TieBreak
from hltas.score import describe_score, load_score

logger = logging.getLogger("midi_to_hltas")

EXIT_CONFIG_ERROR = 2


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert MIDI to an HLTAS script using a per-track action table",
    )
    parser.add_argument("input", type=Path, help="Input MIDI file")
    parser.add_argument(
        "--spec",
        type=Path,
        default=None,
        help="JSON run spec (action table and options)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output .hltas path (overrides spec.output; '-' for stdout)",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print every MIDI event per track and exit",
    )
    parser.add_argument(
        "--legato",
        type=int,
        choices=(0, 1),
        default=None,
        help="Merge events at most this many ticks apart into one segment",
    )
    parser.add_argument(
        "--reference-pitch",
        type=int,
        default=None,
        help="MIDI note number tuned to 440 Hz (69 = A4, 72 = C5)",
    )
    parser.add_argument(
        "--tie-break",
        choices=sorted(tb.value for tb in TieBreak),
        default=None,
        help="Which track sets the step: the soonest to re-trigger or the highest sounding note",
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Emit an 'echo N' marker before every wait bulk",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _apply_overrides(spec: RunSpec, args: argparse.Namespace) -> RunSpec:
    changes = {}
    if args.legato is not None:
        changes["legato"] = args.legato
    if args.reference_pitch is not None:
        if not 0 <= args.reference_pitch <= 127:
            raise ValueError("--reference-pitch must be in [0, 127]")
        changes["reference_pitch"] = args.reference_pitch
    if args.tie_break is not None:
        changes["tie_break"] = TieBreak(args.tie_break)
    if args.diagnostics:
        changes["diagnostics"] = True
    return dataclasses.replace(spec, **changes) if changes else spec


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        score = load_score(args.input)
    except (OSError, EOFError, ValueError) as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.info:
        print(describe_score(score))
        return 0

    if args.spec is None:
        parser.error("--spec is required unless --info is given")

    try:
        spec = _apply_overrides(load_run_spec(args.spec), args)
        scheduler = spec.build_scheduler(score)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if score.ticks_per_beat != spec.ticks_per_quarter:
        logger.warning(
            "%s uses %d ticks per beat; converting with %d",
            args.input.name,
            score.ticks_per_beat,
            spec.ticks_per_quarter,
        )

    # Render fully before touching the output so a failed run writes nothing.
    try:
        records = scheduler.run()
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    buf = io.StringIO()
    count = write_records(records, buf)

    out_arg = args.output if args.output is not None else spec.output
    if out_arg is None or str(out_arg) == "-":
        sys.stdout.write(buf.getvalue())
        return 0

    out_path = Path(out_arg).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(buf.getvalue(), encoding="utf-8")

    stats = scheduler.stats
    print(f"MIDI: {args.input.name}  tracks={score.track_count} tpb={score.ticks_per_beat}")
    print(f"Wrote {count} frame bulks -> {out_path}")
    print(
        f"  elapsed={stats.elapsed:.3f}s waits={stats.waits} retriggers={stats.retriggers} "
        f"rests={stats.rests} suppressed={stats.suppressed}"
    )
    if stats.capped_segments:
        print(f"  capped segments: {stats.capped_segments}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
