"""Running external commands on behalf of image and process operations."""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence

from procman.errors import ProcmanError
from procman.log import get_logger


def run_command(
    argv: Sequence[str],
    env: Mapping[str, str] | None = None,
    error: type[ProcmanError] = ProcmanError,
) -> None:
    """Run ``argv`` with inherited standard streams.

    A non-empty ``env`` replaces the environment of the child. Any failure,
    including a non-zero exit status, raises ``error``.
    """
    logger = get_logger()
    if not argv:
        raise error("no command given")
    command, *args = argv
    logger.info("executing command: %s with args: %s", command, args)
    try:
        subprocess.run(list(argv), env=dict(env) if env else None, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.error("error running command: %s", exc)
        raise error("error running the command") from exc
    logger.info("command %s executed", command)