"""Exception types raised by procman."""

from __future__ import annotations


class ProcmanError(Exception):
    """Base class for every error procman raises."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class _CodedError(ProcmanError):
    """An error that carries a numeric status code."""

    def __init__(self, message: str = "", code: int = 500) -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"Error {self.code}: {self.message}"


class ImageBuildError(_CodedError):
    """Building an image failed."""


class ImageListFailure(_CodedError):
    """Reading the local image store failed."""


class ImageGetError(_CodedError):
    """Looking up a single image failed."""


class ImageDelError(_CodedError):
    """Deleting an image failed."""


class ProcStartError(_CodedError):
    """Starting a process failed."""


class ImageError(ProcmanError):
    """Error reported by the public image API."""


class ImageListError(ProcmanError):
    """Error reported by the public image listing API."""