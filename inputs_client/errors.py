"""
Error types raised by the inputs client.
"""
from typing import Any, List, Optional

import httpx


class InputsError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(InputsError):
    """No usable credentials or endpoint configured."""


class RemoteRejection(InputsError):
    """The service answered with a non-success status or an unreadable body."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        response: Optional[httpx.Response] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.response = response
        super().__init__(f"Request rejected with status {status_code}: {body!r}")

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code == 401


class TransportFailure(InputsError):
    """The request never completed (connection error, timeout, ...)."""

    def __init__(self, message: str, connect_phase: bool = False):
        # connect_phase: the request was never delivered, so resending is safe
        self.connect_phase = connect_phase
        super().__init__(message)


class PartialBatchFailure(InputsError):
    """Some batches of a bulk create failed while others were applied."""

    def __init__(self, report, succeeded: List[int], failed: List[int], first_error: BaseException):
        self.report = report
        self.succeeded = succeeded
        self.failed = failed
        self.first_error = first_error
        super().__init__(
            f"{len(failed)} of {len(succeeded) + len(failed)} batches failed "
            f"(failed: {failed}): {first_error}"
        )
