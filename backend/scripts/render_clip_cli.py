#!/usr/bin/env python3
"""
CLI tool to inspect and render styled subtitle filters.

Usage:
    python scripts/render_clip_cli.py <cues.json> [--video <path> --start <s> --end <s> --output <path>]

The cue file holds a JSON array of subtitle cues (text, start_time, end_time
and optional style fields). Without --video the filter expression is printed
and nothing is rendered.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.pipeline.subtitles import SubtitleCue, build_subtitles_filter
from app.utils.ffmpeg import FFmpegError, build_vertical_filter, render_clip


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def load_cues(cues_path: Path):
    """Read subtitle cues from a JSON array file."""
    if not cues_path.exists():
        raise FileNotFoundError(f"Cue file not found: {cues_path}")

    data = json.loads(cues_path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("Cue file must contain a JSON array")
    return [SubtitleCue.from_dict(item) for item in data]


def main():
    parser = argparse.ArgumentParser(
        description="Print the subtitle filter for a cue file and optionally render a clip",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print the filter chain
    python scripts/render_clip_cli.py cues.json

    # Render seconds 30-45 of a local file
    python scripts/render_clip_cli.py cues.json --video input.mp4 --start 30 --end 45 --output clip.mp4
        """
    )

    parser.add_argument("cues_path", type=Path, help="JSON file with subtitle cues")
    parser.add_argument("--video", "-v", type=Path, default=None, help="Source video to render from")
    parser.add_argument("--start", type=float, default=0.0, help="Clip start in seconds")
    parser.add_argument("--end", type=float, default=None, help="Clip end in seconds")
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path("./clip.mp4"),
        help="Output file (default: ./clip.mp4)"
    )

    args = parser.parse_args()

    try:
        cues = load_cues(args.cues_path)
        subtitles = build_subtitles_filter(cues)
        print(f"{build_vertical_filter()},{subtitles}" if subtitles else build_vertical_filter())

        if args.video is None:
            return

        end = args.end
        if end is None:
            end = max((cue.end_time for cue in cues), default=0.0) + args.start
        asyncio.run(render_clip(args.video, args.output, args.start, end, cues))
        logger.info(f"Clip written to: {args.output}")
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    except FFmpegError as e:
        logger.error(f"{e}\n{e.output}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
