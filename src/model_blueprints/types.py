"""
Type definitions for Model Blueprints.

This module contains enums used throughout the construction engine.
"""

from enum import StrEnum


class MaterializationMode(StrEnum):
    """
    Persistence policy for a construction call.

    - PERSISTED: The instance is saved through its own save contract
    - PERSISTED_WITH_GRAPH: Same outcome as PERSISTED; associations built
      during resolution are always saved regardless of mode
    - TRANSIENT: The top-level instance is never saved
    """

    PERSISTED = "persisted"
    PERSISTED_WITH_GRAPH = "persisted_with_graph"
    TRANSIENT = "transient"

    @property
    def saves(self) -> bool:
        """Whether the top-level instance is saved in this mode."""
        return self is not MaterializationMode.TRANSIENT
