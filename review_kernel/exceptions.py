"""
Typed exception hierarchy for the GL review kernel.

Every error has a typed class and a class-level ``code`` attribute so callers
catch by type and APIs report a stable, machine-readable identifier.
Exceptions carry structured attributes (row numbers, account ids, stage names)
rather than only a message string.

    ReviewKernelError (base)
    |
    +-- IngestionError
    |   +-- UnsupportedFileTypeError
    |   +-- EmptyOrUnreadableFileError
    |   +-- NoQualifyingHeaderFoundError
    |   +-- PreviewDiscardedError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |
    +-- WorkflowError
    |   +-- InvalidStageSequenceError
    |   +-- RejectRequestNotFoundError
    |   +-- RejectReasonRequiredError
    |
    +-- ConfigError
    |   +-- UnknownUserError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AssistantError
        +-- AssistantServiceFailure

Row-level ingestion problems (duplicate account numbers, missing required
fields) are NOT exceptions: they are collected as ``UploadError`` values so a
batch can partially succeed. A role mismatch on a workflow transition is a
typed ``TransitionOutcome.WRONG_ACTOR`` result, not an exception.

Error codes
-----------
UNSUPPORTED_FILE_TYPE         file extension is not .xlsx or .csv
EMPTY_OR_UNREADABLE_FILE      file has no rows or could not be parsed
NO_QUALIFYING_HEADER_FOUND    no header row met the alias/ratio thresholds
PREVIEW_DISCARDED             preview was cancelled before confirmation
DUPLICATE_ACCOUNT_NUMBER      (row-level) account number repeated or existing
MISSING_REQUIRED_FIELD        (row-level) required canonical field is blank
ACCOUNT_NOT_FOUND             account id does not exist
INVALID_STAGE_SEQUENCE        stage list empty, duplicated or unterminated
REJECT_REQUEST_NOT_FOUND      reject prompt unknown or already consumed
REJECT_REASON_REQUIRED        reject submitted with a blank reason
UNKNOWN_USER                  user not present in the configured catalogue
IMMUTABILITY_VIOLATION        audit entry update/delete or account delete
ASSISTANT_SERVICE_FAILURE     generative-text service call failed
"""

from __future__ import annotations


class ReviewKernelError(Exception):
    """Base exception for all GL review errors."""

    code: str = "REVIEW_KERNEL_ERROR"


# Ingestion (file-level; abort the whole batch)


class IngestionError(ReviewKernelError):
    """Base for file-level ingestion failures.

    ``row`` is the spreadsheet row the failure is reported against: 0 for
    pre-processing failures that happen before the file is opened, 1 for
    failures found while reading it.
    """

    code: str = "INGESTION_ERROR"
    row: int = 1

    def __init__(self, message: str, source_name: str):
        self.source_name = source_name
        super().__init__(message)


class UnsupportedFileTypeError(IngestionError):
    """File extension is not one of the supported spreadsheet formats."""

    code: str = "UNSUPPORTED_FILE_TYPE"
    row: int = 0

    def __init__(self, source_name: str, allowed: tuple[str, ...]):
        self.allowed = allowed
        super().__init__(
            f"Invalid file type. Please upload a {' or '.join(allowed)} file.",
            source_name,
        )


class EmptyOrUnreadableFileError(IngestionError):
    """File contains no rows or could not be parsed."""

    code: str = "EMPTY_OR_UNREADABLE_FILE"

    def __init__(self, source_name: str, detail: str = ""):
        self.detail = detail
        message = "The file is empty or could not be read."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message, source_name)


class NoQualifyingHeaderFoundError(IngestionError):
    """No sheet had a header row matching the required aliases."""

    code: str = "NO_QUALIFYING_HEADER_FOUND"

    def __init__(self, source_name: str, required_fields: tuple[str, ...], rows_scanned: int):
        self.required_fields = required_fields
        self.rows_scanned = rows_scanned
        super().__init__(
            "Could not find a header row containing the required columns "
            f"({', '.join(required_fields)}) in the first {rows_scanned} rows of any sheet.",
            source_name,
        )


class PreviewDiscardedError(IngestionError):
    """Preview was cancelled; its parsed rows were discarded."""

    code: str = "PREVIEW_DISCARDED"
    row: int = 0

    def __init__(self, source_name: str):
        super().__init__(f"Preview of {source_name} was discarded before confirmation.", source_name)


# Accounts


class AccountError(ReviewKernelError):
    """Base exception for account lookups."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with the given id does not exist."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# Workflow


class WorkflowError(ReviewKernelError):
    """Base exception for workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidStageSequenceError(WorkflowError):
    """Stage sequence is empty, has duplicates, or lacks the finalized sentinel."""

    code: str = "INVALID_STAGE_SEQUENCE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid stage sequence: {reason}")


class RejectRequestNotFoundError(WorkflowError):
    """Reject prompt token is unknown, cancelled, or already submitted."""

    code: str = "REJECT_REQUEST_NOT_FOUND"

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Reject request not found or already resolved: {token}")


class RejectReasonRequiredError(WorkflowError):
    """A rejection was submitted without a reason."""

    code: str = "REJECT_REASON_REQUIRED"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"A reason is required to reject account {account_id}")


# Configuration


class ConfigError(ReviewKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class UnknownUserError(ConfigError):
    """User name is not present in the configured user catalogue."""

    code: str = "UNKNOWN_USER"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown user: {name}")


# Immutability


class ImmutabilityError(ReviewKernelError):
    """Base exception for append-only violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify an audit entry or delete an account."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Immutability violation on {entity_type} {entity_id}: {reason}")


# Assistant


class AssistantError(ReviewKernelError):
    """Base exception for the chat assistant boundary."""

    code: str = "ASSISTANT_ERROR"


class AssistantServiceFailure(AssistantError):
    """The generative-text service call failed. Soft: callers substitute a message."""

    code: str = "ASSISTANT_SERVICE_FAILURE"

    def __init__(self, model: str, detail: str):
        self.model = model
        self.detail = detail
        super().__init__(f"Assistant call to {model} failed: {detail}")
