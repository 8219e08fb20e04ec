from __future__ import annotations


class XLSmartError(Exception):
    """Base error for the role standardization workflow."""

    status_code = 500


class ConfigurationError(XLSmartError):
    """Missing API key or database credentials. Never retried."""


class InputError(XLSmartError):
    status_code = 400


class FileReadError(InputError):
    def __init__(self, file_name: str, reason: str):
        super().__init__(f"Failed to read {file_name}: {reason}")
        self.file_name = file_name
        self.reason = reason


class BackendError(XLSmartError):
    """Non-2xx or transport failure from the text-generation service."""

    status_code = 502


class AuthenticationError(XLSmartError):
    status_code = 401


class NotFoundError(XLSmartError):
    status_code = 404


class InvalidStatusTransition(XLSmartError):
    status_code = 409
