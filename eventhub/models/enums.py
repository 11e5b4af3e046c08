"""Enums for EventHub - these define the valid values for states."""
from enum import Enum


class RegistrationStatus(str, Enum):
    """The two states a registration row can be in. No other states are allowed."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
