"""
Base domain model classes for Waypoint.

Purpose
-------
Provide the small set of domain abstractions the tutorial engine is built
from: identity-bearing entities (steps, sequences), immutable value objects
(screen positions) and the validation helpers that guard authoring-time
invariants.

Responsibilities
----------------
- Define base Entity class with identity and equality semantics
- Define base ValueObject class for immutable value types
- Provide validation helpers raising DomainValidationError

Non-Responsibilities
--------------------
- Runtime state machines (handled by the tutorial model)
- Orchestration and cancellation (handled by the tutorial controller)
- Rendering (handled by presentation implementations)

Design Notes
------------
- Authoring mistakes (empty identifiers, negative delays, duplicate step ids)
  raise at construction time. Runtime misuse never raises; the controller
  reports it through logging and boolean return values instead.

Usage Example
-------------
>>> class Anchor(ValueObject):
...     def __init__(self, x: float, y: float):
...         self.x = x
...         self.y = y
...         self._validate()
...
...     def _validate(self) -> None:
...         validate_non_negative(self.x, "x")
"""

from __future__ import annotations

import math
from abc import ABC
from typing import Any, Optional


# ============================================================================
# VALUE OBJECT
# ============================================================================


class ValueObject(ABC):
    """
    Base class for immutable value objects.

    Value objects are defined by their attributes, not by identity.
    Two value objects with the same attributes are considered equal.

    Usage
    -----
    Subclasses should:
    1. Define all attributes in __init__
    2. Implement _validate() to enforce invariants
    3. Expose attributes read-only (properties, no setters)
    """

    def __eq__(self, other: object) -> bool:
        """Value objects are equal if all attributes are equal."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        """Value objects can be used as dict keys."""
        return hash(tuple(sorted(self.__dict__.items())))

    def _validate(self) -> None:
        """
        Validate invariants.

        Subclasses override this and raise DomainValidationError on violations.
        """
        pass


# ============================================================================
# ENTITY
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with a string identity.

    Two entities of the same concrete type with the same identifier are
    considered the same entity, even if their attributes differ.

    Usage
    -----
    Subclasses should:
    1. Call super().__init__(entity_id) in constructor
    2. Define methods that modify state according to their rules
    """

    def __init__(self, entity_id: str) -> None:
        """
        Initialize entity with identity.

        Parameters
        ----------
        entity_id : str
            Unique, non-empty identifier for this entity

        Raises
        ------
        DomainValidationError
            If the identifier is empty
        """
        validate_not_empty(entity_id, "id")
        self._id = entity_id

    @property
    def id(self) -> str:
        """Get entity ID (immutable)."""
        return self._id

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they share a concrete type and ID."""
        if not isinstance(other, Entity) or type(other) is not type(self):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """
    Exception raised when domain model validation fails.

    This is the base exception for all authoring-time rule violations
    in domain models.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        """
        Initialize validation error.

        Parameters
        ----------
        message : str
            Human-readable error message
        field : Optional[str]
            Field name that failed validation (if applicable)
        """
        super().__init__(message)
        self.field = field


def validate_not_empty(value: Any, field_name: str) -> None:
    """
    Validate that a string value is present and not blank.

    Raises
    ------
    DomainValidationError
        If value is not a string, or is empty/whitespace
    """
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError(
            f"{field_name} must be a non-empty string, got {value!r}",
            field=field_name,
        )


def validate_non_negative(value: Any, field_name: str) -> None:
    """
    Validate that a number is finite and non-negative.

    Parameters
    ----------
    value : int | float
        Value to validate
    field_name : str
        Name of the field (for error messages)

    Raises
    ------
    DomainValidationError
        If value is not a number, is NaN/infinite, or is negative
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DomainValidationError(
            f"{field_name} must be a number, got {type(value).__name__}",
            field=field_name,
        )
    if not math.isfinite(value) or value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )
