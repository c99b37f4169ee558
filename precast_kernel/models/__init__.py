"""ORM models for the pricing kernel."""

from precast_kernel.models.freight_rate import FreightRate
from precast_kernel.models.material import Material, MaterialPlantPrice, MaterialPlantStock
from precast_kernel.models.piece import Piece, PieceMaterialFormula
from precast_kernel.models.piece_price import PiecePrice
from precast_kernel.models.process_parameters import ProcessParameters
from precast_kernel.models.zone import Zone

__all__ = [
    "Zone",
    "Material",
    "MaterialPlantStock",
    "MaterialPlantPrice",
    "Piece",
    "PieceMaterialFormula",
    "ProcessParameters",
    "PiecePrice",
    "FreightRate",
]
