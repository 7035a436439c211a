"""Building an image root filesystem from an ``ImageSpec.yaml`` context."""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import yaml

from procman.commands import run_command
from procman.errors import ImageBuildError
from procman.log import get_logger
from procman.models import Image, ImageBuildStep, ImageSpec

DEFAULT_ROOT = "/var/lib/procman"
SPEC_FILE_NAME = "ImageSpec.yaml"
METADATA_FILE_NAME = "img.yaml"
ARCHIVE_NAME = "img.tar.gz"
CHILD_PATH = "/bin:/sbin:/usr/bin:/usr/sbin"
ARCH = "x86_64"
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"


def parent_image_dir(root: str = DEFAULT_ROOT) -> str:
    """Directory holding every image, created when missing."""
    directory = f"{root}/img"
    os.makedirs(directory, mode=0o755, exist_ok=True)
    return directory


def image_dir(image_id: str, root: str = DEFAULT_ROOT) -> str:
    """Directory holding the archive and metadata of one image."""
    return f"{parent_image_dir(root)}/{image_id}"


def image_context_dir(image_id: str, root: str = DEFAULT_ROOT) -> str:
    """Root filesystem directory an image is assembled in."""
    return f"{parent_image_dir(root)}/{image_id}/rootfs"


def parse_image_spec(context_dir: str) -> ImageSpec:
    """Read and parse ``ImageSpec.yaml`` from the build context."""
    logger = get_logger()
    spec_file = f"{context_dir}/{SPEC_FILE_NAME}"
    logger.info("parsing image spec yaml at: %s", spec_file)

    if not os.path.exists(spec_file):
        logger.error("file %s not found", spec_file)
        raise ImageBuildError(f"file {spec_file} not found")

    try:
        data = Path(spec_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise ImageBuildError(f"error reading file {spec_file}: {exc}") from exc

    try:
        spec = ImageSpec.from_dict(yaml.safe_load(data))
    except (yaml.YAMLError, ValueError) as exc:
        logger.error("error unmarshal: %s", exc)
        raise ImageBuildError(
            f"error reading the yaml spec {spec_file}: {exc}"
        ) from exc

    logger.info("image spec yaml parsed successfully")
    return spec


def perform_copy(image: Image, step: ImageBuildStep, context_dir: str) -> None:
    """Copy a path from the build context into the image root filesystem."""
    logger = get_logger()
    logger.info("copying %s to %s", step.source, step.destination)

    source = f"{context_dir}/{step.source}"
    destination = f"{image.context_temp_dir}{step.destination}"

    if not os.path.exists(source):
        raise ImageBuildError("path does not exist")

    run_command(["cp", "-r", source, destination], error=ImageBuildError)
    logger.info("copied %s to %s", step.source, step.destination)


def perform_run(image: Image, step: ImageBuildStep) -> None:
    """Run a step's command chrooted into the image root filesystem."""
    logger = get_logger()
    logger.info("running command: %s", step.command)

    if not step.command:
        raise ImageBuildError("run step has no command")

    root_dir = image.context_temp_dir

    def enter_root() -> None:
        os.chdir(root_dir)
        os.chroot(root_dir)

    try:
        completed = subprocess.run(
            list(step.command),
            env={"PATH": CHILD_PATH},
            preexec_fn=enter_root,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.error("error starting child process: %s", exc)
        raise ImageBuildError(f"error changing root: {exc}") from exc

    status = completed.returncode
    if status < 0:
        logger.info("child process killed by signal: %s", -status)
        raise ImageBuildError("something happend to the child proc")
    logger.info("child process exited with status: %s", status)
    if status != 0:
        raise ImageBuildError("something happend to the child proc")
    logger.info("command executed successfully")


def perform_steps(image: Image, spec: ImageSpec, context_dir: str) -> None:
    """Apply every build step, then write the job configuration."""
    for step in spec.steps:
        if step.type == "copy":
            perform_copy(image, step, context_dir)
        elif step.type == "run":
            perform_run(image, step)

    conf_dir = f"{image.context_temp_dir}/etc/procman"
    try:
        os.makedirs(conf_dir, mode=0o755, exist_ok=True)
        job_yaml = yaml.safe_dump(spec.job.to_dict(), sort_keys=False)
        Path(f"{conf_dir}/job.yaml").write_text(job_yaml, encoding="utf-8")
    except (OSError, yaml.YAMLError) as exc:
        raise ImageBuildError(f"error creating conf: {exc}") from exc


def build_alpine_base(image: Image, spec: ImageSpec) -> None:
    """Download and unpack the Alpine minimal root filesystem."""
    logger = get_logger()
    logger.info("building alpine base")

    parts = spec.base.split(":")
    if len(parts) < 2:
        raise ImageBuildError(f"invalid base image: {spec.base!r}")
    version = parts[1]

    root_dir = image.context_temp_dir
    url = (
        f"http://dl-cdn.alpinelinux.org/alpine/v{version}/releases/{ARCH}/"
        f"alpine-minirootfs-{version}.0-{ARCH}.tar.gz"
    )
    commands = [
        ["wget", "-q", "-O", f"{root_dir}/rootfs.tar.gz", url],
        [
            "sh",
            "-c",
            f"cd {root_dir} && tar -xf rootfs.tar.gz && rm rootfs.tar.gz",
        ],
        ["chmod", "755", root_dir],
        ["find", root_dir, "-type", "d", "-exec", "chmod", "755", "{}", ";"],
    ]
    for command in commands:
        run_command(command, error=ImageBuildError)

    logger.info("base alpine build succeeded")


def package_image(image: Image) -> None:
    """Archive the image root filesystem into ``img.tar.gz``."""
    logger = get_logger()
    try:
        os.makedirs(image.img_path, mode=0o755, exist_ok=True)
    except OSError as exc:
        logger.error("error creating the imgpath dir: %s", exc)
        raise ImageBuildError(f"error creating imgpath: {exc}") from exc

    run_command(
        [
            "tar",
            "-czf",
            f"{image.img_path}/{ARCHIVE_NAME}",
            "-C",
            image.img_path,
            "rootfs",
        ],
        error=ImageBuildError,
    )


def delete_image_context(image: Image) -> None:
    """Remove the unpacked root filesystem once it has been archived."""
    logger = get_logger()
    logger.info("deleting image context dir: %s", image.context_temp_dir)
    if not os.path.lexists(image.context_temp_dir):
        return
    try:
        if os.path.isdir(image.context_temp_dir) and not os.path.islink(
            image.context_temp_dir
        ):
            shutil.rmtree(image.context_temp_dir)
        else:
            os.remove(image.context_temp_dir)
    except OSError as exc:
        logger.error("error running command: %s", exc)
        raise ImageBuildError("error running the command") from exc


def write_image_metadata(image: Image) -> None:
    """Write the image metadata to ``img.yaml`` in the image directory."""
    logger = get_logger()
    logger.info("writing metadata for image: %s", image)
    try:
        data = yaml.safe_dump(image.to_dict(), sort_keys=False)
    except yaml.YAMLError as exc:
        raise ImageBuildError(f"error writing image metadata: {exc}") from exc
    try:
        Path(f"{image.img_path}/{METADATA_FILE_NAME}").write_text(
            data, encoding="utf-8"
        )
    except OSError as exc:
        raise ImageBuildError(f"error creating conf: {exc}") from exc
    logger.info("successfully wrote metadata for image: %s", image)


def build(image: Image, context_dir: str) -> None:
    """Run the whole build of ``image`` from ``context_dir``."""
    logger = get_logger()
    logger.info("starting image build: %s", image)

    spec = parse_image_spec(context_dir)
    build_alpine_base(image, spec)
    perform_steps(image, spec, context_dir)
    package_image(image)
    delete_image_context(image)
    image.created = datetime.now(timezone.utc).strftime(CREATED_FORMAT)
    write_image_metadata(image)