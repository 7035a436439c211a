"""Command line entry point: build the test image and start a process from it."""

from __future__ import annotations

import argparse

from procman.api import build_image, start_process
from procman.errors import ProcmanError
from procman.image_build import DEFAULT_ROOT
from procman.log import get_logger

IMAGE_NAME = "test-img"
PROCESS_NAME = "test-proc"
DEFAULT_CONTEXT = "./alpine-basic"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procman",
        description="Build an image and start a process from it.",
    )
    parser.add_argument("tag", help="tag of the image to build and run")
    parser.add_argument(
        "--context", default=DEFAULT_CONTEXT, help="image build context directory"
    )
    parser.add_argument(
        "--root", default=DEFAULT_ROOT, help="directory holding images and processes"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Build the image, then start a process from it; 0 when it started."""
    args = _parser().parse_args(argv)
    logger = get_logger()

    try:
        build_image(IMAGE_NAME, args.tag, args.context, args.root)
    except ProcmanError as exc:
        logger.error("image build: %s", exc)

    try:
        process = start_process(PROCESS_NAME, IMAGE_NAME, args.tag, {}, args.root)
    except ProcmanError as exc:
        logger.error("process start: %s", exc)
        return 1

    logger.info("started process %s (%s)", process.name, process.id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())