"""
Error taxonomy for the face pipeline.

Per-item errors (bad box, missing or unreadable source) are logged and skipped by
the stages; everything else propagates to the invoking trigger, which owns
redelivery. "Nothing found" outcomes are plain ``None`` / empty results.
"""


class FaceTaggerError(Exception):
    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({ctx})"


class InvalidGeometry(FaceTaggerError):
    status_code = 422


class ImageDecodeError(FaceTaggerError):
    status_code = 422


class DetectionProviderError(FaceTaggerError):
    status_code = 502


class EnqueueError(FaceTaggerError):
    status_code = 503


class SourceNotFound(FaceTaggerError):
    status_code = 404


class EmptyCrop(FaceTaggerError):
    status_code = 422


class PersistError(FaceTaggerError):
    status_code = 500


class UnknownFace(FaceTaggerError):
    status_code = 404


class StoreError(FaceTaggerError):
    status_code = 503


class ChatTransportError(FaceTaggerError):
    status_code = 502
