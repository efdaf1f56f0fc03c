from typing import Any


class CoreException(Exception):
    def __init__(
        self, message: str | None = None, additional_info: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.additional_info = additional_info


class InfrastructureException(CoreException):
    pass


class InstanceProcessingException(CoreException):
    pass


class BackendError(InfrastructureException):
    """The key-value backend failed (connection, timeout, protocol)."""


class PartialCascadeError(BackendError):
    """
    A later step of a multi-key write or delete failed after earlier steps
    succeeded. The keys listed in ``additional_info["completed_keys"]`` were
    written/deleted; ``additional_info["pending_keys"]`` were not touched.
    """


class RecordDecodeError(InstanceProcessingException):
    """Stored bytes do not match any registered record shape."""
