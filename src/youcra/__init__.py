"""YouCra watch certification and statistics toolkit."""

__version__ = "0.1.0"
