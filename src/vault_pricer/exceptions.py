"""Exceptions raised by vault-pricer."""


class PriceConfigError(Exception):
    """Raised at startup when pricing configuration is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message)
