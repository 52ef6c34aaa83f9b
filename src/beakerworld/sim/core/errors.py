"""Beaker world exception hierarchy."""


class BeakerError(Exception):
    """Root of all beaker world exceptions."""


class NotFound(BeakerError, KeyError):
    """A stable id is unknown or its slot has been tombstoned."""

    def __init__(self, entity_id: int) -> None:
        super().__init__(entity_id)
        self.entity_id = entity_id

    def __str__(self) -> str:
        return f"no live entity with id {self.entity_id}"


class ConfigurationError(BeakerError, ValueError):
    """Invalid or inconsistent configuration, raised before any tick runs."""


class SurfaceError(BeakerError):
    """A surface handle does not refer to a body on the surface."""


class InteractionError(BeakerError):
    """The interaction resolver was handed a pair kind it has no rule for."""
