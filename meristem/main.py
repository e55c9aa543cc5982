"""
Grow an L-system preset and save it as PNG images.

Example:
    python -m meristem.main --preset plant_fractal --snapshot --gif growth.gif
    python -m meristem.main --preset koch_curve --generations 4 --output-dir img/koch
"""

import argparse
import logging
import math
import os
import sys

from meristem.errors import InvalidConfiguration, StackUnderflow
from meristem.presets import PresetLibrary
from meristem.render import render, save_animation, save_contact_sheet

logger = logging.getLogger("meristem")


def setup_logging(log_file=None, verbose=False):
    level = logging.DEBUG if verbose else logging.INFO
    fmt = '%(asctime)s - %(levelname)s - %(message)s'
    # configure once; repeated calls (main() run twice) must not stack handlers
    if logging.getLogger().handlers:
        return
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=fmt, handlers=handlers)


def build_parser():
    parser = argparse.ArgumentParser(description="Simulate plant growth with a Lindenmayer system.")
    parser.add_argument("--preset", type=str, default="plant_fractal",
                        help="named configuration (see --list-presets)")
    parser.add_argument("--list-presets", action="store_true",
                        help="print the available presets and exit")
    parser.add_argument("--generations", type=int, default=None,
                        help="number of rewrite passes")
    parser.add_argument("--branch-length", type=float, default=None,
                        help="length of one F step, in pixels")
    parser.add_argument("--branch-width", type=int, default=None,
                        help="stroke width in pixels")
    parser.add_argument("--turn-angle", type=float, default=None,
                        help="angle for + and -, in degrees")
    parser.add_argument("--initial-phase", type=float, default=None,
                        help="starting heading in degrees (-90 points up)")
    parser.add_argument("--canvas-size", type=int, nargs="+", default=None,
                        help="canvas size in pixels: SIZE or WIDTH HEIGHT")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="directory for the PNG files")
    parser.add_argument("--snapshot", action="store_true",
                        help="save one image per drawn segment")
    parser.add_argument("--fit", action="store_true",
                        help="scale the drawing to fill the canvas")
    parser.add_argument("--max-length", type=int, default=None,
                        help="refuse to expand beyond this many symbols")
    parser.add_argument("--gif", type=str, default=None,
                        help="also write an animated GIF of the growth (implies --snapshot)")
    parser.add_argument("--contact-sheet", type=str, default=None,
                        help="also write a grid preview of the growth (implies --snapshot)")
    parser.add_argument("--max-frames", type=int, default=120,
                        help="frames held in memory for --gif / --contact-sheet, evenly thinned")
    parser.add_argument("--log-file", type=str, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args):
    overrides = {}
    if args.generations is not None:
        overrides["generations"] = args.generations
    if args.branch_length is not None:
        overrides["branch_length"] = args.branch_length
    if args.branch_width is not None:
        overrides["branch_width"] = args.branch_width
    if args.turn_angle is not None:
        overrides["turn_angle"] = math.radians(args.turn_angle)
    if args.initial_phase is not None:
        overrides["initial_phase"] = math.radians(args.initial_phase)
    if args.canvas_size is not None:
        if len(args.canvas_size) not in (1, 2):
            raise InvalidConfiguration("--canvas-size takes SIZE or WIDTH HEIGHT")
        size = args.canvas_size
        overrides["canvas_size"] = (size[0], size[0]) if len(size) == 1 else tuple(size)
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.snapshot or args.gif or args.contact_sheet:
        overrides["snapshot_per_step"] = True
    if args.fit:
        overrides["fit_to_canvas"] = True
    if args.max_length is not None:
        overrides["max_length"] = args.max_length
    return PresetLibrary.get(args.preset, **overrides)


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    if args.list_presets:
        for name, config in PresetLibrary.get_all().items():
            print(f"{name}: {config.description}")
        return 0

    try:
        config = config_from_args(args)
        logger.debug("config: %s", config.to_dict())
        want_frames = bool(args.gif or args.contact_sheet)
        result = render(config, keep_frames=want_frames, max_frames=args.max_frames)
        if args.gif:
            save_animation(result.frames, args.gif)
        if args.contact_sheet:
            save_contact_sheet(result.frames, args.contact_sheet)
    except InvalidConfiguration as err:
        logger.error("invalid configuration: %s", err)
        return 2
    except StackUnderflow as err:
        logger.error("malformed symbol string: %s", err)
        return 1

    logger.info("%d images written to %s", len(result.paths), os.path.abspath(config.output_dir))
    return 0


if __name__ == "__main__":
    sys.exit(main())
