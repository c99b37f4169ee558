"""
Module: precast_kernel.selectors.process_parameter_selector
Responsibility: Process Parameter Lookup and the month-over-month
    comparison used by the parameters screen.
Architecture position: Kernel > Selectors.

Lookup rule:
    The exact month first; otherwise the most recent earlier month for the
    same zone, flagged is_fallback=True.  Nothing at all raises
    ProcessParametersNotConfiguredError: pricing without parameters would
    silently drop every process and labor cost.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from precast_kernel.domain.dtos import (
    PROCESS_PARAMETER_FIELDS,
    ParameterLookup,
    ProcessParametersInfo,
    ZoneInfo,
)
from precast_kernel.domain.money import month_start, percent_change, previous_month
from precast_kernel.exceptions import ProcessParametersNotConfiguredError
from precast_kernel.logging_config import get_logger
from precast_kernel.models.process_parameters import ProcessParameters
from precast_kernel.models.zone import Zone
from precast_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.process_parameters")


@dataclass(frozen=True)
class ZoneMonthComparison:
    """Parameters of one zone for a month and the month before, with % deltas."""

    zone: ZoneInfo
    month: date
    current: ProcessParametersInfo | None
    previous: ProcessParametersInfo | None
    deltas: dict[str, Decimal | None]


class ProcessParameterSelector(BaseSelector[ProcessParameters]):
    """Read access to monthly process parameters."""

    def get_exact(self, zone_id: UUID, month: date) -> ProcessParametersInfo | None:
        """Parameters stored for exactly this (zone, month), or None."""
        stmt = select(ProcessParameters).where(
            ProcessParameters.zone_id == zone_id,
            ProcessParameters.month_date == month_start(month),
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        return ProcessParametersInfo.from_model(row) if row is not None else None

    def get_parameters(self, zone_id: UUID, month: date) -> ParameterLookup:
        """
        Resolve parameters for a zone and month, falling back to the latest
        earlier month.

        Args:
            zone_id: Zone to resolve.
            month: Any date in the requested month.

        Returns:
            ParameterLookup with is_fallback and the source month.

        Raises:
            ProcessParametersNotConfiguredError: If the zone has no
                parameters on or before the requested month.
        """
        requested = month_start(month)
        stmt = (
            select(ProcessParameters)
            .where(
                ProcessParameters.zone_id == zone_id,
                ProcessParameters.month_date <= requested,
            )
            .order_by(ProcessParameters.month_date.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise ProcessParametersNotConfiguredError(str(zone_id), requested)

        params = ProcessParametersInfo.from_model(row)
        is_fallback = params.month_date != requested
        if is_fallback:
            logger.info(
                "process_parameters_fallback",
                extra={
                    "zone_id": str(zone_id),
                    "requested_month": requested.isoformat(),
                    "source_month": params.month_date.isoformat(),
                },
            )
        return ParameterLookup(
            parameters=params,
            is_fallback=is_fallback,
            requested_month=requested,
            source_month=params.month_date,
        )

    def compare_months(self, month: date) -> list[ZoneMonthComparison]:
        """
        Compare each active zone's parameters with the previous month.

        Deltas are percent changes rounded to 2 places; None when either
        month is missing or the previous value is zero.
        """
        current_month = month_start(month)
        prior_month = previous_month(current_month)

        zones = self.session.execute(
            select(Zone).where(Zone.deleted_at.is_(None)).order_by(Zone.code)
        ).scalars().all()

        rows = self.session.execute(
            select(ProcessParameters).where(
                ProcessParameters.month_date.in_([current_month, prior_month])
            )
        ).scalars().all()
        by_key = {
            (r.zone_id, r.month_date): ProcessParametersInfo.from_model(r) for r in rows
        }

        result: list[ZoneMonthComparison] = []
        for zone in zones:
            current = by_key.get((zone.id, current_month))
            previous = by_key.get((zone.id, prior_month))
            deltas: dict[str, Decimal | None] = {}
            for name in PROCESS_PARAMETER_FIELDS:
                if current is None or previous is None:
                    deltas[name] = None
                else:
                    deltas[name] = percent_change(getattr(current, name), getattr(previous, name))
            result.append(
                ZoneMonthComparison(
                    zone=ZoneInfo.from_model(zone),
                    month=current_month,
                    current=current,
                    previous=previous,
                    deltas=deltas,
                )
            )
        return result
