import argparse
import logging
import sys
from typing import List, Optional

from gifcreator.core.errors import GifCreatorError
from gifcreator.core.frame_normalizer import FrameNormalizer
from gifcreator.core.gif_assembler import GifAssembler
from gifcreator.utils import app_settings
from gifcreator.utils.file_handler import FrameStackHandler

logger = logging.getLogger("gifcreator")


def configure_logging(level: str) -> None:
    """Attach the log file handler once, at the configured level."""
    if logger.handlers:
        return
    app_settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(app_settings.LOG_FILE, encoding="utf-8", mode="a")
    file_handler.setLevel(level)

    # logger.exception() includes the traceback
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.setLevel(level)
    logger.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Assemble still images into an animated GIF")
    parser.add_argument("inputs", nargs="+", help="Frame files, URLs, or directories of frames")
    parser.add_argument("--output", "-o", required=True, help="Output GIF file")
    parser.add_argument(
        "--delay", "-d", type=int, action="append",
        help="Frame delay in hundredths of a second (repeat per frame; one value applies to all)",
    )
    parser.add_argument("--loop", "-l", type=int, help="Loop count, 0 loops forever")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for URL frames")
    return parser


def resolve_delays(delays: Optional[List[int]], frame_count: int) -> List[int]:
    if not delays:
        return [app_settings.get_default_delay()] * frame_count
    if len(delays) == 1:
        return delays * frame_count
    return delays


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(app_settings.get_log_level())

    handler = FrameStackHandler()
    frames = handler.load_frame_stack(args.inputs)
    if not frames:
        print("No frames found.", file=sys.stderr)
        return 1

    timeout = args.timeout if args.timeout is not None else app_settings.get_url_timeout()
    loop = args.loop if args.loop is not None else app_settings.get_loop()
    assembler = GifAssembler(FrameNormalizer(url_timeout=timeout))
    try:
        data = assembler.create(frames, resolve_delays(args.delay, len(frames)), loop)
    except GifCreatorError as e:
        logger.exception("Failed to assemble GIF from %d frame(s)", len(frames))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        out = handler.write_gif(data, args.output)
    except OSError as e:
        logger.exception("Failed to write GIF to %s", args.output)
        print(f"Error: could not write {args.output}: {e}", file=sys.stderr)
        return 1
    print(f"GIF created: {out} ({handler.get_frame_count()} frames, {len(data)} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
