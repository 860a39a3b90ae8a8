"""Exceptions raised by the listing parser."""


class ConfigurationError(Exception):
    """Raised when the parser is configured in a way it cannot work with."""


class SyntaxRulesError(ConfigurationError):
    """Raised for missing or malformed syntax rules."""
