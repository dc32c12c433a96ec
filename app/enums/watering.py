"""
Watering Enumerations
=====================

Enums shared by the watering scheduler, the storage backends and the API
layer. Values are upper-case strings so they serialize identically in the
server database, the device-local JSON store and HTTP payloads.
"""

from enum import Enum


class WaterNeed(str, Enum):
    """
    Water-need classification of a plant species.
    Used by: IntervalPolicy, species catalog
    """
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    def __str__(self) -> str:
        return self.value


class WateringStatus(str, Enum):
    """
    Lifecycle states of a watering event.
    PENDING is the only non-terminal state.
    """
    PENDING = "PENDING"
    WATERED = "WATERED"
    POSTPONED = "POSTPONED"

    @property
    def is_terminal(self) -> bool:
        return self is not WateringStatus.PENDING

    def __str__(self) -> str:
        return self.value


class WateringAction(str, Enum):
    """
    Actions a caller can apply to a pending watering event.
    """
    WATERED = "WATERED"
    POSTPONED = "POSTPONED"

    @property
    def resulting_status(self) -> WateringStatus:
        return WateringStatus(self.value)

    def __str__(self) -> str:
        return self.value


class StorageMode(str, Enum):
    """
    Where scheduling data lives for the current session.
    SERVER: authenticated, shared relational store
    LOCAL: guest mode, device-resident storage only
    """
    SERVER = "server"
    LOCAL = "local"

    def __str__(self) -> str:
        return self.value
