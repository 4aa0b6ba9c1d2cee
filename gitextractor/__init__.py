"""Git repository ingestion into normalized domain tables."""

__version__ = "0.1.0"
