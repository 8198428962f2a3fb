"""Provider dashboard: leads + patients aggregation with contact history."""

__version__ = "1.4.0"
