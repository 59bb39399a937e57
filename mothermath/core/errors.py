"""
errors.py
---------
Exception hierarchy for the Mother of Math backend.

Families:
- Configuration errors: missing or malformed credentials, detected before any network call.
- Gateway errors: HTTP failures or unusable output from the LLM gateway.
- Validation errors: bad user input caught before anything is sent to the gateway.
- Persistence errors: database failures while saving or deleting records.
- Export errors: document rendering failures.

main.py maps every family to an HTTP status and a short user-facing message.
"""

from typing import Optional


class MotherOfMathError(Exception):
    """Base class for all application errors."""

    user_message = "Something went wrong. Please try again."


# -------------------------
# Configuration
# -------------------------
class ConfigurationError(MotherOfMathError):
    user_message = "Server configuration error. Please contact the administrator."


class MissingCredentialsError(ConfigurationError):
    pass


# -------------------------
# Gateway
# -------------------------
class AIClientError(MotherOfMathError):
    user_message = "The AI service could not complete the request. Please try again."


class GatewayHTTPError(AIClientError):
    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API request failed with status {status}: {message}")


class GatewayConnectionError(AIClientError):
    pass


class UnexpectedResponseError(AIClientError):
    pass


class InvalidJSONError(AIClientError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__("The AI returned a response that was not valid JSON.")


# -------------------------
# Validation
# -------------------------
class InputValidationError(MotherOfMathError):
    @property
    def user_message(self) -> str:  # type: ignore[override]
        return str(self)


class EmptyTopicError(InputValidationError):
    def __init__(self, message: str = "Please enter a topic and select a level."):
        super().__init__(message)


class NonMathTopicError(InputValidationError):
    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(
            "Please enter a mathematics-related topic. This generator specializes in math lesson plans."
        )


class EmptyTranscriptError(InputValidationError):
    def __init__(self, message: str = "A valid transcript is required."):
        super().__init__(message)


class NoQuestionsError(InputValidationError):
    def __init__(self, message: str = "A topic and at least one question are required."):
        super().__init__(message)


class InvalidSectionsError(InputValidationError):
    pass


class TranscriptRewriteError(InputValidationError):
    def __init__(self, message: str = "Transcript updates may only append new entries."):
        super().__init__(message)


# -------------------------
# Persistence / lookup
# -------------------------
class PersistenceError(MotherOfMathError):
    user_message = "Could not save your changes. Please try again."


class NotFoundError(MotherOfMathError):
    def __init__(self, what: str, identifier: Optional[str] = None):
        self.what = what
        self.identifier = identifier
        super().__init__(f"{what} not found" + (f": {identifier}" if identifier else ""))

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"{self.what} not found."


# -------------------------
# Export
# -------------------------
class ExportError(MotherOfMathError):
    user_message = "Failed to export the lesson plan."


# -------------------------
# In-flight operations
# -------------------------
class OperationInProgressError(MotherOfMathError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Operation already in progress: {key}")

    user_message = "A request is already in progress. Please wait for it to finish."


class OperationCancelledError(MotherOfMathError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Operation cancelled: {key}")

    user_message = "The request was cancelled."
