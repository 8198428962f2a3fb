"""Dashboard exceptions."""


class DashboardError(Exception):
    """Base exception for dashboard errors"""


class RecordSourceError(DashboardError):
    """A backend record-source request failed (transport, status or body)"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderNotFoundError(RecordSourceError):
    """No provider matches the given provider code"""
