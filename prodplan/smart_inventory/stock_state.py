"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STOCK STATE (Inventory Snapshot & Material Availability)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Contratos de inventário consumidos pelo core de planeamento:

    InventorySnapshot:
        - get_on_hand(item_id) -> quantidade física (ou None se desconhecido)

    MaterialAvailability:
        - check(requirements)   -> AvailabilityCheck(all_available, shortages)
        - reserve(order_id, requirements)

Mathematical Model:
──────────────────
    available[item] = max(0, on_hand[item] - committed[item])

    shortage[item]  = required[item] - available[item]   if required > available

StockState is the in-memory implementation of both contracts. The MRP engine
only reads on-hand; reservations are made by production order release.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from prodplan.errors import InvalidInputError, MaterialShortageError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONTRACTS
# ═══════════════════════════════════════════════════════════════════════════════

class InventorySnapshot(ABC):
    """On-hand inventory source for the MRP engine."""

    @abstractmethod
    def get_on_hand(self, item_id: str) -> Optional[float]:
        """On-hand quantity, or None when the item is not tracked."""


@dataclass
class AvailabilityCheck:
    """Resultado da verificação de disponibilidade de material."""
    all_available: bool
    shortages: List[str] = field(default_factory=list)


class MaterialAvailability(ABC):
    """Material availability check and reservation, used on order release."""

    @abstractmethod
    def check(self, requirements: Mapping[str, float]) -> AvailabilityCheck:
        ...

    @abstractmethod
    def reserve(self, order_id: str, requirements: Mapping[str, float]) -> None:
        ...

    @abstractmethod
    def release_reservation(self, order_id: str) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# IN-MEMORY STOCK
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ItemStock:
    """
    Estado de stock de um item.

    Attributes:
        item_id: Identificador do item
        quantity_on_hand: Quantidade física
        quantity_committed: Quantidade reservada para ordens de produção
    """
    item_id: str
    quantity_on_hand: float = 0.0
    quantity_committed: float = 0.0

    @property
    def quantity_available(self) -> float:
        """Quantidade disponível (on_hand - committed)."""
        return max(0.0, self.quantity_on_hand - self.quantity_committed)

    def to_dict(self) -> Dict:
        return {
            "item_id": self.item_id,
            "quantity_on_hand": self.quantity_on_hand,
            "quantity_committed": self.quantity_committed,
            "quantity_available": self.quantity_available,
        }


class StockState(InventorySnapshot, MaterialAvailability):
    """
    In-memory stock keyed by item.

    Reservations are tracked per order so that a release is never applied twice.
    """

    def __init__(self, on_hand: Optional[Mapping[str, float]] = None):
        self.items: Dict[str, ItemStock] = {}
        self.reservations: Dict[str, Dict[str, float]] = {}
        for item_id, quantity in (on_hand or {}).items():
            self.set_on_hand(item_id, quantity)

    def set_on_hand(self, item_id: str, quantity: float) -> None:
        if quantity < 0:
            raise InvalidInputError(f"On-hand for {item_id} must be >= 0, got {quantity}")
        stock = self.items.setdefault(item_id, ItemStock(item_id=item_id))
        stock.quantity_on_hand = float(quantity)

    def get_on_hand(self, item_id: str) -> Optional[float]:
        stock = self.items.get(item_id)
        return stock.quantity_on_hand if stock is not None else None

    def get_available(self, item_id: str) -> float:
        stock = self.items.get(item_id)
        return stock.quantity_available if stock is not None else 0.0

    def check(self, requirements: Mapping[str, float]) -> AvailabilityCheck:
        shortages = []
        for item_id, required in requirements.items():
            available = self.get_available(item_id)
            if required > available:
                shortages.append(
                    f"{item_id}: required {required:g}, available {available:g}"
                )
        return AvailabilityCheck(all_available=not shortages, shortages=shortages)

    def reserve(self, order_id: str, requirements: Mapping[str, float]) -> None:
        if order_id in self.reservations:
            raise InvalidInputError(f"Materials already reserved for order {order_id}")

        result = self.check(requirements)
        if not result.all_available:
            raise MaterialShortageError(
                f"Cannot reserve materials for order {order_id}", result.shortages
            )

        for item_id, quantity in requirements.items():
            stock = self.items.setdefault(item_id, ItemStock(item_id=item_id))
            stock.quantity_committed += quantity
        self.reservations[order_id] = dict(requirements)
        logger.info(f"Reserved {len(requirements)} materials for order {order_id}")

    def release_reservation(self, order_id: str) -> None:
        """Undo the reservation of an order (no-op if none)."""
        reserved = self.reservations.pop(order_id, {})
        for item_id, quantity in reserved.items():
            stock = self.items[item_id]
            stock.quantity_committed = max(0.0, stock.quantity_committed - quantity)

    def to_dataframe(self) -> pd.DataFrame:
        """Converte estado para DataFrame."""
        return pd.DataFrame(
            [stock.to_dict() for stock in self.items.values()],
            columns=["item_id", "quantity_on_hand", "quantity_committed", "quantity_available"],
        )
