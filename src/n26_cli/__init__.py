"""N26 CLI - session-managing client for the N26 banking API."""

__version__ = "0.1.0"
