"""Release operator: decide, tag, checksum and publish trunk releases."""

__version__ = "0.3.0"
