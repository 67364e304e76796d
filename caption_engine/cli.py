"""Command-line interface for inspecting caption timing.

WHY: The live preview and the export renderer compute caption state
independently. When an exported clip looks different from the editor, the
fastest way to find out why is to dump what the preview math says for
every frame and diff it against the renderer. The same tool answers quick
"what is on screen at 12.3 s" questions against a file or a live service.

HOW: argparse with two subcommands.
  active: locate the active segment and word at one instant
  sample: walk a time range at a frame rate and emit one JSON line per
          frame with every rendered word's opacity, scale, color, and
          visibility
The transcript comes from a JSON file or, with --video-id, from the
transcript service through TranscriptClient (run via asyncio.run()).

RULES:
- Data goes to stdout as JSON (one object per line); status to stderr
- SOURCE and --video-id are mutually exclusive; exactly one is required
- Exit code 1 on any load or argument error, with the message on stderr
- --verbose enables DEBUG logging via logging.basicConfig
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from caption_engine.api.client import TranscriptAPIError, TranscriptClient
from caption_engine.core.animation import RenderedWord, compute_caption_frame
from caption_engine.core.ir import Transcript, TranscriptFormatError
from caption_engine.core.style import AnimationMode, CaptionStyle
from caption_engine.core.timing import ActiveCaption, TimingIndex


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


async def _fetch_transcript(video_id: str, base_url: Optional[str]) -> Transcript:
    async with TranscriptClient(base_url=base_url) as client:
        return await client.get_transcript(video_id)


def _load_transcript(args: argparse.Namespace) -> Transcript:
    if args.video_id:
        _status("Fetching transcript for {}...".format(args.video_id))
        try:
            transcript = asyncio.run(_fetch_transcript(args.video_id, args.base_url))
        except (TranscriptAPIError, ValueError) as e:
            _fail(str(e))
    else:
        path = Path(args.source)
        if not path.is_file():
            _fail("File not found: {}".format(path))
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            transcript = Transcript.from_dict(data)
        except (json.JSONDecodeError, TranscriptFormatError) as e:
            _fail("{}: {}".format(path, e))

    _status("  {} segments, {:.2f}s".format(len(transcript.segments), transcript.duration))
    return transcript


def _load_style(args: argparse.Namespace) -> CaptionStyle:
    style = CaptionStyle()
    if getattr(args, "style", None):
        path = Path(args.style)
        try:
            style = CaptionStyle.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValueError) as e:
            _fail("Could not read style {}: {}".format(path, e))
    if getattr(args, "animation", None):
        style = dataclasses.replace(style, animation=AnimationMode(args.animation))
    return style


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _active_to_dict(active: Optional[ActiveCaption], t: float) -> Dict[str, Any]:
    if active is None:
        return {"time": t, "segmentId": None, "segmentIndex": None, "wordIndex": None, "word": None}
    return {
        "time": t,
        "segmentId": active.segment.id,
        "segmentIndex": active.segment_index,
        "wordIndex": active.word_index,
        "word": active.word.text if active.word is not None else None,
        "isEdited": active.segment.is_edited,
    }


def _rendered_to_dict(rendered: RenderedWord) -> Dict[str, Any]:
    state = rendered.state
    return {
        "index": rendered.word_index,
        "text": rendered.text,
        "opacity": round(state.opacity, 6),
        "scale": round(state.scale, 6),
        "color": state.color,
        "visible": state.visible,
        "zone": state.zone.value,
    }


def frame_times(start: float, end: float, fps: float) -> List[float]:
    """Frame timestamps from start to end inclusive at ``fps``."""
    count = int(round((end - start) * fps)) + 1
    return [start + i / fps for i in range(count)]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_active(args: argparse.Namespace) -> None:
    transcript = _load_transcript(args)
    active = TimingIndex(transcript.segments).locate(args.time)
    print(json.dumps(_active_to_dict(active, args.time)))


def _cmd_sample(args: argparse.Namespace) -> None:
    if args.fps <= 0:
        _fail("--fps must be positive")

    transcript = _load_transcript(args)
    style = _load_style(args)

    start = args.start
    end = args.end if args.end is not None else transcript.duration
    if end < start:
        _fail("--end ({}) is before --start ({})".format(end, start))

    index = TimingIndex(transcript.segments)
    times = frame_times(start, end, args.fps)
    _status("Sampling {} frames at {} fps ({} animation)...".format(
        len(times), args.fps, style.animation.value
    ))

    for i, t in enumerate(times):
        active = index.locate(t)
        words = compute_caption_frame(active.segment, style, t) if active else []
        line = {
            "frame": i,
            "time": round(t, 6),
            "segmentId": active.segment.id if active else None,
            "words": [_rendered_to_dict(w) for w in words],
        }
        print(json.dumps(line))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Subcommands: active, sample
    - Each takes SOURCE or --video-id (optionally --base-url)
    """
    parser = argparse.ArgumentParser(
        prog="caption_engine",
        description="Inspect caption timing and animation state for a transcript.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_source(p: argparse.ArgumentParser) -> None:
        group = p.add_mutually_exclusive_group(required=True)
        group.add_argument(
            "source",
            nargs="?",
            default=None,
            help="Path to a transcript JSON file.",
        )
        group.add_argument(
            "--video-id",
            default=None,
            help="Fetch the transcript for this video from the transcript service.",
        )
        p.add_argument(
            "--base-url",
            default=None,
            help="Transcript service base URL (default: CAPTION_API_BASE_URL).",
        )

    active = sub.add_parser("active", help="Show the active segment and word at one instant.")
    add_source(active)
    active.add_argument("--time", type=float, required=True, help="Playback time in seconds.")
    active.set_defaults(func=_cmd_active)

    sample = sub.add_parser("sample", help="Emit per-frame caption state as JSON lines.")
    add_source(sample)
    sample.add_argument("--style", default=None, help="Path to a caption style JSON file.")
    sample.add_argument(
        "--animation",
        choices=[m.value for m in AnimationMode],
        default=None,
        help="Override the style's animation mode.",
    )
    sample.add_argument("--fps", type=float, default=30.0, help="Frames per second (default: %(default)s).")
    sample.add_argument("--start", type=float, default=0.0, help="First sample time in seconds.")
    sample.add_argument(
        "--end",
        type=float,
        default=None,
        help="Last sample time in seconds (default: end of transcript).",
    )
    sample.set_defaults(func=_cmd_sample)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
    args.func(args)


if __name__ == "__main__":
    main()
