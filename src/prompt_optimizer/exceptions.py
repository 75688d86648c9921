"""
Optimizer exception hierarchy.

This module defines all exceptions that can be raised by an optimization run.
None of them are retried inside the pipeline; the caller decides whether to
resubmit.
"""
from typing import Optional


class OptimizerError(Exception):
    """
    Base exception for all optimizer errors.

    Every subclass carries a ``user_message`` suitable for showing to the
    person who submitted the prompt, and a ``retryable`` flag telling the
    caller whether resubmitting can help.
    """

    retryable: bool = False
    user_message: str = "An unexpected error occurred. Please check the logs."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class SafetyBlockedError(OptimizerError):
    """
    The completion service refused the request on content-policy grounds.

    The user should rephrase the prompt and resubmit.
    """

    retryable = True
    user_message = (
        "The optimization was blocked by the API's safety filters. "
        "Please modify your prompt."
    )


class EmptyResponseError(OptimizerError):
    """The completion service returned nothing and gave no safety reason."""

    retryable = True
    user_message = (
        "Received an empty response from the optimization model. "
        "The model may have refused to answer."
    )


class MalformedResponseError(OptimizerError):
    """
    The completion payload failed to parse against the response schema.

    The raw payload is kept for logging; it is never shown to the user.
    """

    user_message = "The optimization model returned an invalid format. Please try again."

    def __init__(self, message: Optional[str] = None, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class TransportFailureError(OptimizerError):
    """Network or service failure while talking to the completion service."""

    user_message = "Failed to reach the optimization model. Please try again later."


class InvalidRequestError(OptimizerError):
    """The optimize request is missing input it needs (prompt or image)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class RfqStateError(OptimizerError):
    """A clarification transition was requested from the wrong state."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message
