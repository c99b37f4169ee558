"""Flush-only write services for the pricing kernel."""

from precast_kernel.services.base import BaseService
from precast_kernel.services.formula_service import FormulaService
from precast_kernel.services.material_price_service import MaterialPriceService
from precast_kernel.services.material_service import MaterialService
from precast_kernel.services.piece_price_publisher import PiecePricePublisher
from precast_kernel.services.process_parameter_service import ProcessParameterService

__all__ = [
    "BaseService",
    "FormulaService",
    "MaterialPriceService",
    "MaterialService",
    "PiecePricePublisher",
    "ProcessParameterService",
]
