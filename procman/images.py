"""The local image store: building, listing, looking up and deleting images."""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

import yaml

from procman.errors import ImageBuildError, ImageDelError, ImageGetError, ImageListFailure
from procman.image_build import (
    DEFAULT_ROOT,
    METADATA_FILE_NAME,
    build,
    image_context_dir,
    image_dir,
    parent_image_dir,
)
from procman.log import get_logger
from procman.models import Image


def _new_id() -> str:
    return str(uuid.uuid4()).split("-")[0]


def build_image(
    name: str, tag: str, context_dir: str, root: str = DEFAULT_ROOT
) -> Image:
    """Build an image named ``name:tag`` from the absolute ``context_dir``."""
    logger = get_logger()
    logger.info("creating image '%s' using setup script %s", name, context_dir)

    image_id = _new_id()
    image = Image(
        id=image_id,
        name=name,
        context_temp_dir=image_context_dir(image_id, root),
        tag=tag,
        img_path=image_dir(image_id, root),
    )

    try:
        os.makedirs(image.context_temp_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise ImageBuildError(f"context creation failed with error: {exc}") from exc

    try:
        build(image, context_dir)
    except ImageBuildError as exc:
        raise ImageBuildError(f"context creation failed with error: {exc}") from exc

    return image


def _read_metadata(path: str) -> Image:
    return Image.from_dict(yaml.safe_load(Path(path).read_text(encoding="utf-8")))


def list_images(root: str = DEFAULT_ROOT) -> list[Image]:
    """Metadata of every image in the store, ordered by image id.

    Entries whose metadata is missing or unreadable are skipped.
    """
    logger = get_logger()
    directory = parent_image_dir(root)

    try:
        entries = sorted(os.listdir(directory))
    except OSError as exc:
        logger.error("error reading dir: %s", exc)
        raise ImageListFailure(f"error reading dir: {exc}") from exc

    images = []
    for entry in entries:
        metadata_file = f"{directory}/{entry}/{METADATA_FILE_NAME}"
        if not os.path.exists(metadata_file):
            logger.error("error statfile: %s does not exist", metadata_file)
            continue
        try:
            images.append(_read_metadata(metadata_file))
        except OSError as exc:
            logger.error("error readfile: %s", exc)
        except (yaml.YAMLError, ValueError) as exc:
            logger.error("error unmarshall: %s", exc)
    return images


def get_image(
    image_id: str = "", name: str = "", tag: str = "", root: str = DEFAULT_ROOT
) -> Image | None:
    """Find an image by id, or else by name and tag.

    Returns ``None`` when no image with that name and tag exists, or when
    neither an id nor both name and tag are given.
    """
    logger = get_logger()

    if image_id:
        directory = image_dir(image_id, root)
        if not os.path.exists(directory):
            logger.error("error statfile: %s does not exist", directory)
            raise ImageGetError(f"error statfile: {directory} does not exist")
        metadata_file = f"{directory}/{METADATA_FILE_NAME}"
        try:
            return _read_metadata(metadata_file)
        except OSError as exc:
            logger.error("error readfile: %s", exc)
            raise ImageGetError(f"error readfile: {exc}") from exc
        except (yaml.YAMLError, ValueError) as exc:
            logger.error("error unmarshal: %s", exc)
            raise ImageGetError(f"error unmarshal: {exc}") from exc

    if name and tag:
        try:
            images = list_images(root)
        except ImageListFailure as exc:
            logger.error("error list: %s", exc)
            raise ImageGetError(exc.message, code=exc.code) from exc
        return next(
            (image for image in images if image.name == name and image.tag == tag),
            None,
        )

    return None


def delete_image(image_id: str, root: str = DEFAULT_ROOT) -> None:
    """Remove the directory of the image with ``image_id``."""
    logger = get_logger()
    logger.info("deleting image with id: %s", image_id)

    directory = image_dir(image_id, root)
    try:
        if os.path.isdir(directory) and not os.path.islink(directory):
            shutil.rmtree(directory)
        elif os.path.lexists(directory):
            os.remove(directory)
    except OSError as exc:
        logger.error("error del: %s", exc)
        raise ImageDelError(f"error getting image: {exc}", code=0) from exc