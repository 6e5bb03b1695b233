"""
ProdPlan Core - Errors
======================

Typed errors raised by the planning engines.

Taxonomy:
- NotFoundError: referenced product, work center or order does not exist
- InvalidInputError: bad quantities, empty horizons, malformed job lists
- InfeasibleError: input is well-formed but cannot be planned
  (zero-capacity work center, missing capacity data)

None of these are transient, so nothing in the core retries them.
"""

from __future__ import annotations

from typing import List, Optional


class PlanningError(Exception):
    """Base class for every error raised by prodplan."""


class NotFoundError(PlanningError, LookupError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, key: str, message: Optional[str] = None):
        super().__init__(message or f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class InvalidInputError(PlanningError, ValueError):
    """Input rejected before any computation started."""


class InvalidTransitionError(InvalidInputError):
    """Production order lifecycle transition not allowed from the current status."""

    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(
            f"Production order {order_id} cannot move from '{current}' to '{target}'"
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class InfeasibleError(PlanningError):
    """Input is valid but no feasible plan can be built from it."""


class MaterialShortageError(PlanningError):
    """Raised when a production order cannot be released for lack of material."""

    def __init__(self, message: str, shortages: List[str]):
        super().__init__(message)
        self.shortages = shortages
