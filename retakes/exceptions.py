"""Retake gate exceptions."""

from auth.exceptions import AuthException, NotFound


class RetakeNotEligible(AuthException):
    code = "RETAKE_NOT_ELIGIBLE"
    status = 400


class RetakeNotFound(NotFound):
    """No retake record exists for the (user, quiz) pair."""
