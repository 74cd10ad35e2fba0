class HealingError(RuntimeError):
    """Raised when selector healing fails."""


class SelectorValidationError(HealingError):
    """Raised when a locator string cannot be parsed."""


class UnsupportedLocatorError(HealingError):
    """Raised when a DOM binding cannot evaluate a locator kind."""
