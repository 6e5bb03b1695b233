"""
ProdPlan Core - Smart Inventory
===============================

Master data (BOM, routing), inventory contracts and the MRP engine.
"""

from prodplan.smart_inventory.bom_engine import (
    BOMComponent,
    BillOfMaterials,
    RoutingOperation,
    Routing,
    BOMRoutingProvider,
    BOMEngine,
)
from prodplan.smart_inventory.stock_state import (
    InventorySnapshot,
    MaterialAvailability,
    AvailabilityCheck,
    ItemStock,
    StockState,
)
from prodplan.smart_inventory.mrp_engine import (
    MRPTimeBucket,
    PurchaseRecommendation,
    ProductionRecommendation,
    MRPResult,
    MRPEngine,
)

__all__ = [
    "BOMComponent",
    "BillOfMaterials",
    "RoutingOperation",
    "Routing",
    "BOMRoutingProvider",
    "BOMEngine",
    "InventorySnapshot",
    "MaterialAvailability",
    "AvailabilityCheck",
    "ItemStock",
    "StockState",
    "MRPTimeBucket",
    "PurchaseRecommendation",
    "ProductionRecommendation",
    "MRPResult",
    "MRPEngine",
]
