"""
Error taxonomy for the front-desk service.

Per-item failures (ResourceWriteFailure, ResourceDeleteFailure) are captured
by the demo orchestrator and reported as data. UpstreamFailure, Busy and
UnexpectedFailure propagate to the API layer.
"""

from typing import Optional


class FrontDeskError(Exception):
    """Base class for all service errors."""

    error_code: str = "front_desk_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RecordStoreError(FrontDeskError):
    """A call to the FHIR record store failed (transport, timeout or non-2xx)."""

    error_code = "record_store_error"

    def __init__(
        self,
        message: str,
        method: str = "",
        path: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code


class ResourceWriteFailure(FrontDeskError):
    """One demo resource could not be created in the record store."""

    error_code = "resource_write_failed"

    def __init__(self, kind: str, resource_id: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.resource_id = resource_id


class ResourceDeleteFailure(FrontDeskError):
    """One tracked demo resource could not be deleted from the record store."""

    error_code = "resource_delete_failed"

    def __init__(self, kind: str, resource_id: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.resource_id = resource_id


class UpstreamFailure(FrontDeskError):
    """A read from the record store failed while building a status snapshot."""

    error_code = "status_failed"


class Busy(FrontDeskError):
    """A setup or clear was requested while another one is still running."""

    error_code = "busy"


class UnexpectedFailure(FrontDeskError):
    """Anything else that escaped the demo or status paths."""

    error_code = "unexpected_failure"
