"""Data models for images, image specs and processes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _mapping(data: Any, what: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _text(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (Mapping, list)):
        raise ValueError(f"field {key!r} must be a scalar")
    return str(value)


def _text_list(data: Mapping, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list")
    return [str(item) for item in value]


@dataclass
class Image:
    """Metadata of a locally stored image."""

    id: str = ""
    name: str = ""
    context_temp_dir: str = ""
    img_path: str = ""
    tag: str = ""
    created: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialisable form; empty optional fields are left out."""
        result = {"id": self.id, "name": self.name}
        optional = (
            ("context_temp_dir", self.context_temp_dir),
            ("imgpath", self.img_path),
            ("tag", self.tag),
            ("created", self.created),
        )
        result.update((key, value) for key, value in optional if value)
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Image:
        data = _mapping(data, "image metadata")
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            context_temp_dir=_text(data, "context_temp_dir"),
            img_path=_text(data, "imgpath"),
            tag=_text(data, "tag"),
            created=_text(data, "created"),
        )


@dataclass
class ImageBuildStep:
    """One step of an image spec: a ``copy`` or a ``run``."""

    name: str = ""
    type: str = ""
    source: str = ""
    destination: str = ""
    workdir: str = ""
    command: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ImageBuildStep:
        data = _mapping(data, "build step")
        return cls(
            name=_text(data, "name"),
            type=_text(data, "type"),
            source=_text(data, "source"),
            destination=_text(data, "destination"),
            workdir=_text(data, "workdir"),
            command=_text_list(data, "command"),
        )


@dataclass
class ImageJob:
    """The job an image runs when started as a process."""

    name: str = ""
    command: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "command": list(self.command)}

    @classmethod
    def from_dict(cls, data: Any) -> ImageJob:
        data = _mapping(data, "job")
        return cls(name=_text(data, "name"), command=_text_list(data, "command"))


@dataclass
class ImageSpec:
    """The parsed contents of an ``ImageSpec.yaml`` file."""

    base: str = ""
    steps: list[ImageBuildStep] = field(default_factory=list)
    job: ImageJob = field(default_factory=ImageJob)

    @classmethod
    def from_dict(cls, data: Any) -> ImageSpec:
        data = _mapping(data, "image spec")
        steps = data.get("steps")
        if steps is None:
            steps = []
        if not isinstance(steps, list):
            raise ValueError("field 'steps' must be a list")
        return cls(
            base=_text(data, "base"),
            steps=[ImageBuildStep.from_dict(step) for step in steps],
            job=ImageJob.from_dict(data.get("job")),
        )


@dataclass
class ImageInfo:
    """Image details as returned by the public API."""

    id: str = ""
    name: str = ""
    img_path: str = ""
    tag: str = ""
    created: str = ""

    @classmethod
    def from_image(cls, image: Image) -> ImageInfo:
        return cls(
            id=image.id,
            name=image.name,
            img_path=image.img_path,
            tag=image.tag,
            created=image.created,
        )


@dataclass
class ProcessCreateImage:
    """The image a new process is started from."""

    name: str = ""
    tag: str = ""


@dataclass
class ProcessCreate:
    """A request to start a process."""

    name: str = ""
    image: ProcessCreateImage = field(default_factory=ProcessCreateImage)
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class PortMapping:
    """A host port forwarded to a port inside the process."""

    host_port: int = 0
    proc_port: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"hostPort": self.host_port, "procPort": self.proc_port}


@dataclass
class ProcessNetwork:
    """Network settings of a process."""

    ports: list[PortMapping] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        if not self.ports:
            return {}
        return {"ports": [port.to_dict() for port in self.ports]}


@dataclass
class Process:
    """A process created from an image."""

    id: str = ""
    name: str = ""
    pid: int = 0
    context_dir: str = ""
    image: Image = field(default_factory=Image)
    job: ImageJob = field(default_factory=ImageJob)
    env: dict[str, str] = field(default_factory=dict)
    network: ProcessNetwork = field(default_factory=ProcessNetwork)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "pid": self.pid,
            "contextDir": self.context_dir,
            "image": self.image.to_dict(),
            "job": self.job.to_dict(),
            "env": dict(self.env),
        }
        network = self.network.to_dict()
        if network:
            result["network"] = network
        return result