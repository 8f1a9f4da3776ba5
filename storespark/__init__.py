"""StoreSpark: role-based store rating API."""

__version__ = "0.1.0"
