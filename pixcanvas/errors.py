from __future__ import annotations


class ColorParseError(ValueError):
    """Raised when a colour string cannot be interpreted."""


class InvalidGradientError(ValueError):
    """Raised when a gradient is evaluated with fewer than two stops."""


class UnsupportedOperationError(NotImplementedError):
    pass


class NoFontAvailableError(LookupError):
    pass


class FontNotLoadedError(RuntimeError):
    pass


class FontLoadError(RuntimeError):
    pass
