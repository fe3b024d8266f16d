"""Configuration exceptions."""


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid.

    Fatal to the whole batch: raised before any item is touched.
    """
