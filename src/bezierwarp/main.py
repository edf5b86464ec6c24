"""
Application Initialization
==========================
Builds a ProjectState, optionally loads a project or applies cuts, and either
exports the warped mesh or opens the PyVista preview.

Usage:
    $ python -m bezierwarp project.h5 --texture photo.png
    $ python -m bezierwarp --cut-h 0.5 --cut-v 0.5 --export warped.vtp
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from bezierwarp.logging_config import setup_logging
from bezierwarp.model.io import IOManager
from bezierwarp.model.state import ProjectState

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bezierwarp",
        description="Warp an image onto a composite bicubic Bezier patch.",
    )
    parser.add_argument("project", nargs="?", help="Project file (.h5) or patch file (.json) to open.")
    parser.add_argument("--texture", help="Image warped onto the patch.")
    parser.add_argument("--background", help="Image shown behind the patch.")
    parser.add_argument("--mode", choices=["bezier", "linear"], help="Interpolation mode.")
    parser.add_argument("--cut-h", type=float, action="append", default=[], metavar="V",
                        help="Horizontal cut at parameter V (repeatable).")
    parser.add_argument("--cut-v", type=float, action="append", default=[], metavar="U",
                        help="Vertical cut at parameter U (repeatable).")
    parser.add_argument("--export", metavar="PATH", help="Write the warped mesh instead of showing it.")
    parser.add_argument("--save", metavar="PATH", help="Save the project (.h5) after applying the cuts.")
    parser.add_argument("--screenshot", metavar="PATH", help="Render off screen into an image file.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    return parser


def load_into(state: ProjectState, path: str) -> None:
    if path.lower().endswith(".json"):
        IOManager.import_patch_json(state, path)
    else:
        IOManager.load_project(state, path)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)

    state = ProjectState()
    if args.project:
        load_into(state, args.project)

    options = {k: v for k, v in (("texture", args.texture),
                                 ("background", args.background),
                                 ("mode", args.mode)) if v is not None}
    if options:
        state.configure(**options)

    for v in args.cut_h:
        state.cut_horizontal(v)
    for u in args.cut_v:
        state.cut_vertical(u)

    if args.save:
        IOManager.save_project(state, args.save)

    if args.export:
        IOManager.export_mesh(state, args.export)
        return 0

    # imported here so exporting works without a display
    from bezierwarp.view.preview import build_plotter

    if args.screenshot:
        plotter = build_plotter(state, off_screen=True)
        plotter.show(screenshot=args.screenshot)
        logger.info(f"Screenshot written to: {args.screenshot}")
        return 0

    build_plotter(state).show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
