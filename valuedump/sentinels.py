"""
Sentinel objects used while walking rendered values.

Sentinels:
    UNREADABLE: Stands in for a record attribute whose access raised, so the walk can
                keep going and render the slot as invalid instead of failing.

All sentinels use identity checks (using 'is') rather than equality checks.
"""

from typing import Any

__all__ = [
    'UNREADABLE',
    'UnreadableType',
]


# Base Sentinel --------------------------------------------------------------------------------------------------------

class _SentinelBase:
    """
    Base class for sentinel objects.

    Sentinels are singleton objects optimized for identity checks.
    """
    __slots__ = ('_name',)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f'<{self._name}>'

    def __eq__(self, other: Any) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def __bool__(self) -> bool:
        return False


# Sentinel Types -------------------------------------------------------------------------------------------------------

class UnreadableType(_SentinelBase):
    """
    Sentinel type for UNREADABLE.

    Marks a field value that could not be obtained, e.g. an unset slot or a
    property-like attribute raising on access.
    """
    __slots__ = ()
    _instance: 'UnreadableType | None' = None

    def __new__(cls) -> 'UnreadableType':
        """Ensures singleton behavior."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if not hasattr(self, '_name'):
            super().__init__("UNREADABLE")

    def __reduce__(self) -> tuple:
        """Ensure pickling returns the singleton instance."""
        return (self.__class__, ())


UNREADABLE = UnreadableType()
