"""Product visibility and curation service."""

__version__ = "1.0.0"
