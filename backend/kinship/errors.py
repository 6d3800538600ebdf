"""Error types raised by the kinship engine."""

from typing import Literal

InputErrorCode = Literal[
    "SELF_COMPARISON",
    "MEMBER_NOT_FOUND",
    "CROSS_TREE",
    "UNKNOWN_MEMBER_REFERENCE",
    "INVALID_GENERATION_CAP",
]


class KinshipError(Exception):
    """Base class for all kinship engine errors."""


class KinshipInputError(KinshipError):
    """
    Raised when the caller hands the engine something it cannot reason about:
    comparing a member with itself, asking about a member outside the
    snapshot, mixing trees, or an out-of-range generation cap.

    Nothing is retried or partially recovered; the error applies to one call.
    """

    def __init__(self, message: str, code: InputErrorCode):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"
