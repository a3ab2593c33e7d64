class InventoryError(Exception):
    """Base class for errors raised by the inventory engine.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(InventoryError):
    """Misconfigured data (bad unit type, zero base multiplier, ...)."""


class NotTrackedError(InventoryError):
    """A stock mutation was requested for an item without inventory tracking."""


class ValidationError(InventoryError):
    """Rejected user input (non-positive quantity, missing selection, ...)."""


class NotFoundError(InventoryError):
    """An id does not refer to a known category, menu item or portion."""
