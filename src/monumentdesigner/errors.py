"""Exception types raised across the designer core."""


class MonumentDesignerError(Exception):
    """Base class for all errors raised by this package."""


class ResourceLoadError(MonumentDesignerError):
    """A font or raster resource could not be resolved."""

    def __init__(self, resource: str, reason: str) -> None:
        super().__init__(f"Could not load '{resource}': {reason}")
        self.resource = resource
        self.reason = reason


class DecorationNotFoundError(MonumentDesignerError, KeyError):
    """The design-state store holds no decoration with the requested id."""

    def __init__(self, decoration_id: str) -> None:
        super().__init__(decoration_id)
        self.decoration_id = decoration_id

    def __str__(self) -> str:
        return f"Decoration '{self.decoration_id}' not found."
