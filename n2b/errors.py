"""Exceptions raised by a conversion run."""

from typing import Optional


class ConversionError(Exception):
    """Base class for errors that abort a conversion run."""


class UnsupportedOperatorError(ConversionError):
    """An operator with no big.js counterpart was found inside a rewrite target."""

    def __init__(self, operator: str, text: str, path: Optional[str] = None, line: int = 0):
        self.operator = operator
        self.text = text
        self.path = path
        self.line = line
        location = f" at {path}:{line}" if path else ""
        super().__init__(
            f"Expression of kind '{operator}' ({text}) is not supported{location}!"
        )
