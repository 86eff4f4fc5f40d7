"""Error kinds surfaced to the caller as error replies."""

from __future__ import annotations

# Reply code for anything that is not a FitKitError.
GENERIC_ERROR_CODE = "FitKit"


class FitKitError(Exception):
    """Base class for errors that become an error reply with ``code``."""

    code = GENERIC_ERROR_CODE

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(FitKitError):
    """A required field is missing or malformed."""

    code = "bad_request"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class UnsupportedTypeError(FitKitError):
    """The type identifier is not in the registry."""

    code = "unsupported"

    def __init__(self, type_id: str) -> None:
        super().__init__(f"Type {type_id!r} is not supported")
        self.type_id = type_id


class PermissionDeniedError(FitKitError):
    code = "permission_denied"

    def __init__(self, message: str = "User denied permission access") -> None:
        super().__init__(message)


class VendorFailureError(FitKitError):
    """Wraps a vendor SDK failure; ``message`` is the vendor's, verbatim."""

    code = "vendor_failure"


class CancelledError(FitKitError):
    code = "cancelled"

    def __init__(self, message: str = "GoogleFit Cancelled") -> None:
        super().__init__(message)


class UnimplementedError(FitKitError):
    """An unmapped method or numeric field format."""

    code = "unimplemented"


class PendingOperationBusyError(FitKitError):
    """A grant resolution for the same verb-class is already outstanding."""

    code = "busy"
