"""
Typed failures raised by the comment store.

Every failure the store can surface derives from ``CommentStoreError`` so
callers (the HTTP layer, scripts) can catch one base class and branch on the
concrete type or its ``code``.
"""


class CommentStoreError(Exception):
    """Base comment store error."""

    def __init__(self, message: str, code: str = "comment_store_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CommentNotFoundError(CommentStoreError):
    """No comment row matches the requested id."""

    def __init__(self, comment_id: str):
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id!r} not found", "comment_not_found")


class BackendUnavailableError(CommentStoreError):
    """The relational store or the cache failed for a reason other than a miss."""

    def __init__(self, message: str, backend: str):
        self.backend = backend
        super().__init__(message, "backend_unavailable")


class SerializationError(CommentStoreError):
    """A cache payload or a scanned row could not be encoded or decoded."""

    def __init__(self, message: str):
        super().__init__(message, "serialization_error")


class CommentValidationError(CommentStoreError):
    """A write request is missing one of its required fields."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(
            f"Missing required field(s): {', '.join(fields)}", "validation_error"
        )


class CommentConflictError(CommentStoreError):
    """The relational store rejected an insert because the id already exists."""

    def __init__(self, comment_id: str):
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id!r} already exists", "comment_conflict")
