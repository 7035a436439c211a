"""Starting processes from locally stored images."""

from __future__ import annotations

import yaml

from procman.errors import ProcStartError
from procman.image_build import DEFAULT_ROOT
from procman.log import get_logger
from procman.models import PortMapping, Process, ProcessCreate, ProcessNetwork
from procman.process_context import (
    build_process_context,
    parse_process_job,
    process_conf_path,
    process_env,
    write_process_yaml,
)

# Fixed port forwards every process is currently given.
DEFAULT_PORTS = ((8020, 3000), (8000, 2000), (8080, 4000))


def start_process(create: ProcessCreate, root: str = DEFAULT_ROOT) -> Process:
    """Prepare a process from the image named in ``create`` and record it.

    The image is unpacked into a new process directory, the job it defines
    is read, and the resulting process is written to ``process.yaml``.
    """
    logger = get_logger()
    logger.info("starting process with name: %s", create.name)

    try:
        process = build_process_context(
            create.name, create.image.name, create.image.tag, root
        )
    except ProcStartError as exc:
        logger.error("error starting process: %s", exc)
        raise ProcStartError(f"error starting process: {exc}") from exc
    process.env = process_env(create)

    try:
        process.job = parse_process_job(process, root)
    except ProcStartError as exc:
        logger.error("error parsing job: %s", exc)
        raise ProcStartError(f"error starting process: {exc}") from exc

    process.network = ProcessNetwork(
        ports=[PortMapping(host_port=host, proc_port=proc) for host, proc in DEFAULT_PORTS]
    )

    conf_path = process_conf_path(process.id, root)
    try:
        write_process_yaml(process, conf_path)
    except (OSError, yaml.YAMLError) as exc:
        raise ProcStartError(f"error starting process: {exc}") from exc

    return process