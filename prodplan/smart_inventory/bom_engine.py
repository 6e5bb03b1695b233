"""
ProdPlan Core - BOM & Routing Engine
====================================

Bill of Materials and routing master data.

Features:
- Single-level BOM per product (components with scrap and lead time)
- Routing per product (ordered operations bound to work centers)
- Provider contract used by the MRP engine and production orders
- In-memory provider loadable from DataFrames

The provider is a read-only collaborator: the engines never mutate BOMs or
routings, and production orders copy what they need at creation time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from prodplan.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BOMComponent:
    """Component line of a BOM (quantities are per unit of parent)."""
    component_id: str
    quantity_per: float
    name: str = ""
    unit: str = "pcs"
    scrap_factor: float = 0.0  # fraction lost per unit produced
    lead_time_days: float = 0.0
    unit_cost: float = 0.0
    is_phantom: bool = False  # pass-through subassembly, never stocked

    def __post_init__(self):
        if self.quantity_per < 0:
            raise InvalidInputError(
                f"Component {self.component_id}: quantity_per must be >= 0, got {self.quantity_per}"
            )
        if not 0.0 <= self.scrap_factor < 1.0:
            raise InvalidInputError(
                f"Component {self.component_id}: scrap_factor must be in [0, 1), got {self.scrap_factor}"
            )
        if self.lead_time_days < 0:
            raise InvalidInputError(
                f"Component {self.component_id}: lead_time_days must be >= 0"
            )

    def gross_quantity(self, parent_quantity: float) -> float:
        """Quantity needed to build `parent_quantity` units, scrap included."""
        return self.quantity_per * parent_quantity * (1 + self.scrap_factor)


@dataclass
class BillOfMaterials:
    """BOM of a product."""
    product_id: str
    components: List[BOMComponent] = field(default_factory=list)
    version: int = 1
    effective_date: Optional[date] = None

    @property
    def total_cost(self) -> float:
        """Material cost of one unit of product (scrap excluded)."""
        return sum(c.unit_cost * c.quantity_per for c in self.components)

    @property
    def max_lead_time_days(self) -> float:
        """Longest component lead time (0 for an empty BOM)."""
        return max((c.lead_time_days for c in self.components), default=0.0)


@dataclass(frozen=True)
class RoutingOperation:
    """
    One step of a routing.

    Times are minutes; run time is per unit produced.
    """
    sequence: int
    name: str
    work_center_id: str
    setup_time: float = 0.0
    run_time_per_unit: float = 0.0
    queue_time: float = 0.0
    move_time: float = 0.0
    labor_cost: float = 0.0
    overhead_cost: float = 0.0

    def __post_init__(self):
        for attr in ("setup_time", "run_time_per_unit", "queue_time", "move_time"):
            if getattr(self, attr) < 0:
                raise InvalidInputError(
                    f"Operation {self.sequence} ({self.name}): {attr} must be >= 0"
                )

    @property
    def total_cost(self) -> float:
        return self.labor_cost + self.overhead_cost


@dataclass
class Routing:
    """Routing of a product: operations run in sequence order."""
    product_id: str
    operations: List[RoutingOperation] = field(default_factory=list)
    version: int = 1
    total_lead_time_days: float = 0.0

    def __post_init__(self):
        sequences = [op.sequence for op in self.operations]
        if any(b <= a for a, b in zip(sequences, sequences[1:])):
            raise InvalidInputError(
                f"Routing {self.product_id}: operation sequence numbers must be strictly increasing, "
                f"got {sequences}"
            )
        if self.total_lead_time_days < 0:
            raise InvalidInputError(f"Routing {self.product_id}: negative lead time")

    @property
    def total_cost(self) -> float:
        return sum(op.total_cost for op in self.operations)

    @property
    def work_center_ids(self) -> List[str]:
        return [op.work_center_id for op in self.operations]


# ═══════════════════════════════════════════════════════════════════════════════
# PROVIDER CONTRACT
# ═══════════════════════════════════════════════════════════════════════════════

class BOMRoutingProvider(ABC):
    """
    Read-only source of BOMs and routings.

    Implementations raise NotFoundError for unknown products.
    """

    @abstractmethod
    def get_bom(self, product_id: str) -> BillOfMaterials:
        ...

    @abstractmethod
    def get_routing(self, product_id: str) -> Routing:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# BOM ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

def _cell(row: pd.Series, column: str, default):
    """Row value, or `default` when the column is absent or empty."""
    value = row.get(column, default)
    return default if pd.isna(value) else value


class BOMEngine(BOMRoutingProvider):
    """
    In-memory BOM and routing store.

    Handles registration, lookup and DataFrame loading of product master data.
    """

    def __init__(self):
        self.boms: Dict[str, BillOfMaterials] = {}
        self.routings: Dict[str, Routing] = {}

    def add_bom(self, bom: BillOfMaterials) -> None:
        """Register (or replace) the BOM of a product."""
        self.boms[bom.product_id] = bom
        logger.debug(f"Added BOM for {bom.product_id} ({len(bom.components)} components)")

    def add_routing(self, routing: Routing) -> None:
        """Register (or replace) the routing of a product."""
        self.routings[routing.product_id] = routing
        logger.debug(f"Added routing for {routing.product_id} ({len(routing.operations)} operations)")

    def get_bom(self, product_id: str) -> BillOfMaterials:
        bom = self.boms.get(product_id)
        if bom is None:
            raise NotFoundError("Product", product_id, f"No BOM for product {product_id}")
        return bom

    def get_routing(self, product_id: str) -> Routing:
        routing = self.routings.get(product_id)
        if routing is None:
            raise NotFoundError("Product", product_id, f"No routing for product {product_id}")
        return routing

    def has_product(self, product_id: str) -> bool:
        return product_id in self.boms and product_id in self.routings

    def load_from_dataframe(
        self,
        bom_df: pd.DataFrame,
        routing_df: pd.DataFrame,
        lead_times: Optional[Dict[str, float]] = None,
    ) -> None:
        """
        Load BOM and routing data from DataFrames.

        Expected columns:
        - bom_df: product_id, component_id, quantity_per, [name, unit, scrap_factor,
          lead_time_days, unit_cost, is_phantom]
        - routing_df: product_id, sequence, name, work_center_id, [setup_time,
          run_time_per_unit, queue_time, move_time, labor_cost, overhead_cost]

        Args:
            lead_times: product_id -> routing total lead time in days
        """
        lead_times = lead_times or {}

        for product_id, rows in bom_df.groupby("product_id", sort=False):
            components = [
                BOMComponent(
                    component_id=str(row["component_id"]),
                    quantity_per=float(row["quantity_per"]),
                    name=str(_cell(row, "name", row["component_id"])),
                    unit=str(_cell(row, "unit", "pcs")),
                    scrap_factor=float(_cell(row, "scrap_factor", 0.0)),
                    lead_time_days=float(_cell(row, "lead_time_days", 0.0)),
                    unit_cost=float(_cell(row, "unit_cost", 0.0)),
                    is_phantom=bool(_cell(row, "is_phantom", False)),
                )
                for _, row in rows.iterrows()
            ]
            self.add_bom(BillOfMaterials(product_id=str(product_id), components=components))

        for product_id, rows in routing_df.groupby("product_id", sort=False):
            rows = rows.sort_values("sequence")
            operations = [
                RoutingOperation(
                    sequence=int(row["sequence"]),
                    name=str(_cell(row, "name", "")),
                    work_center_id=str(row["work_center_id"]),
                    setup_time=float(_cell(row, "setup_time", 0.0)),
                    run_time_per_unit=float(_cell(row, "run_time_per_unit", 0.0)),
                    queue_time=float(_cell(row, "queue_time", 0.0)),
                    move_time=float(_cell(row, "move_time", 0.0)),
                    labor_cost=float(_cell(row, "labor_cost", 0.0)),
                    overhead_cost=float(_cell(row, "overhead_cost", 0.0)),
                )
                for _, row in rows.iterrows()
            ]
            self.add_routing(Routing(
                product_id=str(product_id),
                operations=operations,
                total_lead_time_days=float(lead_times.get(str(product_id), 0.0)),
            ))

        logger.info(f"Loaded {len(self.boms)} BOMs and {len(self.routings)} routings")
