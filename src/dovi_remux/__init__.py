"""dovi-remux: Dolby Vision library remux and fallback conversion."""

__version__ = "0.1.0"
