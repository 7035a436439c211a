"""Preparing the on-disk context of a process started from an image."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

import yaml

from procman.commands import run_command
from procman.errors import ImageGetError, ProcStartError
from procman.image_build import ARCHIVE_NAME, DEFAULT_ROOT
from procman.images import get_image
from procman.log import get_logger
from procman.models import ImageJob, Process, ProcessCreate

PROC_CONF_DIR = "etc/procman"

_DEFAULT_ENV = {
    "PATH": "/bin:/sbin:/usr/bin:/usr/sbin",
    "HOME": "/home",
    "TERM": "xterm-256color",
    "LANG": "en_US.UTF-8",
    "LANGUAGE": "en_US:en",
    "LC_ALL": "en_US.UTF-8",
    "PS1": "[namepace] > ",
}


def all_process_dir(root: str = DEFAULT_ROOT) -> str:
    """Directory holding every process, created when missing."""
    directory = f"{root}/proc"
    os.makedirs(directory, mode=0o755, exist_ok=True)
    return directory


def process_dir(process_id: str, root: str = DEFAULT_ROOT) -> str:
    """Directory of one process (by its id, not its pid), created when missing."""
    directory = f"{all_process_dir(root)}/{process_id}"
    os.makedirs(directory, mode=0o755, exist_ok=True)
    return directory


def process_rootfs(process_id: str, root: str = DEFAULT_ROOT) -> str:
    """Root filesystem of one process, created when missing."""
    directory = f"{all_process_dir(root)}/{process_id}/rootfs"
    os.makedirs(directory, mode=0o755, exist_ok=True)
    return directory


def process_conf_path(process_id: str, root: str = DEFAULT_ROOT) -> str:
    """Path of the ``process.yaml`` configuration inside the process rootfs."""
    return f"{process_rootfs(process_id, root)}/{PROC_CONF_DIR}/process.yaml"


def parse_process_job(process: Process, root: str = DEFAULT_ROOT) -> ImageJob:
    """Read the job the process's image defines."""
    logger = get_logger()
    job_file = f"{process_rootfs(process.id, root)}/{PROC_CONF_DIR}/job.yaml"
    logger.info("parsing job yaml at: %s", job_file)

    if not os.path.exists(job_file):
        logger.error("file %s not found", job_file)
        raise ProcStartError(f"file {job_file} not found")

    try:
        data = Path(job_file).read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("error unmarshal: %s", exc)
        raise ProcStartError(f"error reading the yaml spec {job_file}: {exc}") from exc

    try:
        return ImageJob.from_dict(yaml.safe_load(data))
    except (yaml.YAMLError, ValueError) as exc:
        logger.error("error unmarshal: %s", exc)
        raise ProcStartError(f"error reading the yaml spec {job_file}: {exc}") from exc


def default_job_env() -> dict[str, str]:
    """Environment every process starts with."""
    return dict(_DEFAULT_ENV)


def process_env(create: ProcessCreate) -> dict[str, str]:
    """Default environment overridden by the variables the request gives."""
    env = default_job_env()
    env.update(create.env)
    return env


def write_process_yaml(process: Process, path: str) -> None:
    """Write ``process`` as YAML to ``path``."""
    data = yaml.safe_dump(process.to_dict(), sort_keys=False)
    Path(path).write_text(data, encoding="utf-8")


def build_process_context(
    name: str, image_name: str, image_tag: str, root: str = DEFAULT_ROOT
) -> Process:
    """Unpack the image ``image_name:image_tag`` into a new process directory."""
    logger = get_logger()
    logger.info(
        "building process context with params (%s, %s, %s)",
        name,
        image_name,
        image_tag,
    )

    try:
        image = get_image("", image_name, image_tag, root)
    except ImageGetError as exc:
        logger.error("error reading image: %s", exc)
        raise ProcStartError(f"error reading image: {exc}") from exc
    if image is None:
        logger.error("error reading image: not found")
        raise ProcStartError("error reading image: not found")

    process_id = str(uuid.uuid4()).split("-")[0]
    context_dir = process_dir(process_id, root)
    process = Process(id=process_id, name=name, image=image, context_dir=context_dir)

    archive = f"{context_dir}/{ARCHIVE_NAME}"
    try:
        run_command(
            ["cp", f"{image.img_path}/{ARCHIVE_NAME}", context_dir],
            error=ProcStartError,
        )
    except ProcStartError as exc:
        raise ProcStartError(f"error copying: {exc}") from exc
    try:
        run_command(["tar", "-xf", archive, "-C", context_dir], error=ProcStartError)
    except ProcStartError as exc:
        raise ProcStartError(f"error unarchiving: {exc}") from exc
    try:
        os.remove(archive)
    except OSError as exc:
        raise ProcStartError(f"error removing: {exc}") from exc

    logger.info("built process context (%s, %s, %s)", name, image_name, image_tag)
    return process