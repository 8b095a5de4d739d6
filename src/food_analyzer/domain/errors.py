"""Error taxonomy for the food analysis pipeline."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class StrategyErrorKind(str, Enum):
    """Ways a single estimation strategy can fail."""

    UNCONFIGURED = "unconfigured"
    REMOTE_FAILURE = "remote_failure"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_RESULT = "empty_result"


class InvalidInputError(Exception):
    """Client-caused error detected before any strategy runs."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message


class StrategyError(Exception):
    """Failure of one strategy; recovered by falling back to the next one."""

    def __init__(self, kind: StrategyErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class StrategyFailure:
    """Record of a strategy that failed during one pipeline run."""

    strategy_id: str
    kind: StrategyErrorKind
    message: str


class PipelineError(Exception):
    """Every strategy in the fallback chain failed."""

    def __init__(self, failures: Sequence[StrategyFailure]) -> None:
        super().__init__("All strategies failed")
        self.failures = tuple(failures)

    @property
    def error_code(self) -> str:
        """Response error code summarizing the failures."""
        kinds = {failure.kind for failure in self.failures}
        if kinds == {StrategyErrorKind.TIMEOUT}:
            return "TIMEOUT"
        if kinds == {StrategyErrorKind.REMOTE_FAILURE}:
            return "NETWORK_ERROR"
        return "ALL_STRATEGIES_FAILED"


NO_IMAGE = "NO_IMAGE"
INVALID_IMAGE = "INVALID_IMAGE"
IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
INVALID_REQUEST = "INVALID_REQUEST"
UNKNOWN_ERROR = "UNKNOWN_ERROR"
