"""
Reference lookups for pieces and zones.

Soft-deleted pieces and zones are treated as not found everywhere in
pricing; only catalog maintenance sees them.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from precast_kernel.domain.dtos import PieceInfo, ZoneInfo
from precast_kernel.exceptions import PieceNotFoundError, ZoneNotFoundError
from precast_kernel.models.piece import Piece
from precast_kernel.models.zone import Zone
from precast_kernel.selectors.base import BaseSelector


class PieceSelector(BaseSelector[Piece]):
    """Read access to pieces."""

    def get_piece(self, piece_id: UUID) -> PieceInfo:
        """
        Raises:
            PieceNotFoundError: If the piece does not exist or is inactive.
        """
        piece = self.session.get(Piece, piece_id)
        if piece is None or not piece.is_active:
            raise PieceNotFoundError(str(piece_id))
        return PieceInfo.from_model(piece)

    def get_pieces(self, piece_ids: list[UUID]) -> dict[UUID, PieceInfo]:
        """Active pieces among piece_ids, keyed by id.  Unknown ids are omitted."""
        if not piece_ids:
            return {}
        stmt = select(Piece).where(
            Piece.id.in_(piece_ids),
            Piece.deleted_at.is_(None),
        )
        return {
            piece.id: PieceInfo.from_model(piece)
            for piece in self.session.execute(stmt).scalars()
        }


class ZoneSelector(BaseSelector[Zone]):
    """Read access to zones (production plants)."""

    def get_zone(self, zone_id: UUID) -> ZoneInfo:
        """
        Raises:
            ZoneNotFoundError: If the zone does not exist or is inactive.
        """
        zone = self.session.get(Zone, zone_id)
        if zone is None or not zone.is_active:
            raise ZoneNotFoundError(str(zone_id))
        return ZoneInfo.from_model(zone)

    def get_zone_by_code(self, code: str) -> ZoneInfo:
        stmt = select(Zone).where(Zone.code == code, Zone.deleted_at.is_(None))
        zone = self.session.execute(stmt).scalar_one_or_none()
        if zone is None:
            raise ZoneNotFoundError(code)
        return ZoneInfo.from_model(zone)

    def list_active_zones(self) -> list[ZoneInfo]:
        stmt = select(Zone).where(Zone.deleted_at.is_(None)).order_by(Zone.code)
        return [ZoneInfo.from_model(z) for z in self.session.execute(stmt).scalars()]
