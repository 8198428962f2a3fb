"""
connectors/ - Outbound clients for the dashboard backend.

record_source.py is the only connector: table reads scoped by provider id
plus the record write endpoints used by the dashboard actions.
"""

from .record_source import RecordSourceClient

__all__ = ["RecordSourceClient"]
