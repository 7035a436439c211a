"""Public interface for managing images and starting processes."""

from __future__ import annotations

import os

from procman import images, processes
from procman.errors import (
    ImageBuildError,
    ImageDelError,
    ImageError,
    ImageGetError,
    ImageListFailure,
)
from procman.image_build import DEFAULT_ROOT
from procman.log import get_logger
from procman.models import ImageInfo, Process, ProcessCreate, ProcessCreateImage


def build_image(
    name: str, tag: str, context_dir: str, root: str = DEFAULT_ROOT
) -> ImageInfo | None:
    """Build ``name:tag`` from ``context_dir``.

    Raises ``ImageError`` when the image already exists (the existing image
    is attached as ``image``) or when the build fails. Returns ``None`` when
    the store cannot be searched for an existing image.
    """
    logger = get_logger()

    try:
        existing = images.get_image("", name, tag, root)
    except ImageGetError:
        return None
    if existing is not None:
        error = ImageError("image already exists")
        error.image = ImageInfo.from_image(existing)
        raise error

    logger.info("building image %s:%s using context dir %s", name, tag, context_dir)

    try:
        abs_context_dir = os.path.abspath(context_dir)
    except OSError as exc:
        logger.error("error getting abs path: %s", exc)
        raise ImageError(f"error getting abs path: {exc}") from exc

    try:
        built = images.build_image(name, tag, abs_context_dir, root)
    except ImageBuildError as exc:
        logger.error("error building image: %s", exc)
        raise ImageError(f"error building: {exc}") from exc

    return ImageInfo.from_image(built)


def list_images(root: str = DEFAULT_ROOT) -> list[ImageInfo]:
    """Every image in the store; an unreadable store gives an empty list."""
    logger = get_logger()
    try:
        found = images.list_images(root)
    except ImageListFailure as exc:
        logger.error("error listing images: %s", exc)
        return []
    return [ImageInfo.from_image(image) for image in found]


def get_image(
    image_id: str = "", name: str = "", tag: str = "", root: str = DEFAULT_ROOT
) -> ImageInfo:
    """Find an image by id, or by name and tag; raise ``ImageError`` if absent."""
    logger = get_logger()
    try:
        found = images.get_image(image_id, name, tag, root)
    except ImageGetError as exc:
        logger.error(
            "error getting image (%s, %s, %s): %s", image_id, name, tag, exc
        )
        raise ImageError(exc.message) from exc
    if found is None:
        raise ImageError("not found")
    return ImageInfo.from_image(found)


def del_image(
    image_id: str = "", name: str = "", tag: str = "", root: str = DEFAULT_ROOT
) -> None:
    """Delete the image found by id, or by name and tag."""
    logger = get_logger()
    logger.info("deleting image (%s, %s, %s)", image_id, name, tag)

    try:
        found = images.get_image(image_id, name, tag, root)
    except ImageGetError as exc:
        logger.error(
            "error getting image (%s, %s, %s): %s", image_id, name, tag, exc
        )
        raise ImageError(exc.message) from exc
    if found is None:
        raise ImageError("not found")

    try:
        images.delete_image(found.id, root)
    except ImageDelError as exc:
        raise ImageError(exc.message) from exc


def start_process(
    name: str,
    image_name: str,
    image_tag: str,
    env: dict[str, str] | None = None,
    root: str = DEFAULT_ROOT,
) -> Process:
    """Start a process called ``name`` from ``image_name:image_tag``."""
    create = ProcessCreate(
        name=name,
        image=ProcessCreateImage(name=image_name, tag=image_tag),
        env=dict(env or {}),
    )
    return processes.start_process(create, root)