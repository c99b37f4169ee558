"""
Module: precast_kernel.services.process_parameter_service
Responsibility: Monthly process parameter maintenance per zone.
Architecture position: Kernel > Services.

Process parameters are configuration, not history: an existing month may be
corrected in place by upsert_parameters().  Published prices keep their own
copy of the costs they were computed from.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from precast_kernel.domain.dtos import PROCESS_PARAMETER_FIELDS, ProcessParametersInfo
from precast_kernel.domain.money import ZERO, month_start, previous_month, to_decimal
from precast_kernel.exceptions import (
    InvalidParameterError,
    ParametersAlreadyExistError,
    ProcessParametersNotConfiguredError,
    ZoneNotFoundError,
)
from precast_kernel.logging_config import get_logger
from precast_kernel.models.process_parameters import ProcessParameters
from precast_kernel.models.zone import Zone
from precast_kernel.services.base import BaseService

logger = get_logger("services.process_parameters")


class ProcessParameterService(BaseService[ProcessParameters]):
    """Creates, corrects and copies monthly process parameters."""

    def _require_zone(self, zone_id: UUID) -> Zone:
        zone = self.session.get(Zone, zone_id)
        if zone is None or not zone.is_active:
            raise ZoneNotFoundError(str(zone_id))
        return zone

    def _get_row(self, zone_id: UUID, month: date) -> ProcessParameters | None:
        return self.session.execute(
            select(ProcessParameters).where(
                ProcessParameters.zone_id == zone_id,
                ProcessParameters.month_date == month,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _clean_values(values: dict[str, Decimal]) -> dict[str, Decimal]:
        cleaned: dict[str, Decimal] = {}
        for name, raw in values.items():
            if name not in PROCESS_PARAMETER_FIELDS:
                raise InvalidParameterError(name, str(raw), "unknown process parameter")
            try:
                value = to_decimal(raw)
            except (TypeError, ArithmeticError) as exc:
                raise InvalidParameterError(name, str(raw), "not a decimal value") from exc
            if not value.is_finite() or value < ZERO:
                raise InvalidParameterError(name, str(raw), "must be >= 0")
            cleaned[name] = value
        return cleaned

    def upsert_parameters(
        self,
        zone_id: UUID,
        month: date,
        values: dict[str, Decimal],
        actor_id: UUID,
    ) -> ProcessParametersInfo:
        """
        Create or update parameters for (zone, month).

        month is normalized to the first day of its month.  Fields absent
        from values keep their stored value (or 0 for a new row).

        Raises:
            ZoneNotFoundError, InvalidParameterError.
        """
        self._require_zone(zone_id)
        cleaned = self._clean_values(values)
        target = month_start(month)

        row = self._get_row(zone_id, target)
        created = row is None
        if row is None:
            row = ProcessParameters(zone_id=zone_id, month_date=target, created_by_id=actor_id)
            for name in PROCESS_PARAMETER_FIELDS:
                setattr(row, name, ZERO)
            self.session.add(row)
        else:
            row.updated_by_id = actor_id
        for name, value in cleaned.items():
            setattr(row, name, value)
        self.session.flush()

        logger.info(
            "process_parameters_upserted",
            extra={
                "zone_id": str(zone_id),
                "month": target.isoformat(),
                "row_created": created,
                "fields": sorted(cleaned),
                "actor_id": str(actor_id),
            },
        )
        return ProcessParametersInfo.from_model(row)

    def copy_from_previous_month(
        self,
        zone_id: UUID,
        target_month: date,
        actor_id: UUID,
    ) -> ProcessParametersInfo:
        """
        Copy the previous month's parameters into target_month.

        Raises:
            ZoneNotFoundError: Unknown or inactive zone.
            ParametersAlreadyExistError: target_month is already configured.
            ProcessParametersNotConfiguredError: the previous month is empty.
        """
        self._require_zone(zone_id)
        target = month_start(target_month)
        source_month = previous_month(target)

        if self._get_row(zone_id, target) is not None:
            raise ParametersAlreadyExistError(str(zone_id), target)
        source = self._get_row(zone_id, source_month)
        if source is None:
            raise ProcessParametersNotConfiguredError(str(zone_id), source_month)

        row = ProcessParameters(
            zone_id=zone_id,
            month_date=target,
            created_by_id=actor_id,
            **{name: getattr(source, name) for name in PROCESS_PARAMETER_FIELDS},
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "process_parameters_copied",
            extra={
                "zone_id": str(zone_id),
                "source_month": source_month.isoformat(),
                "target_month": target.isoformat(),
                "actor_id": str(actor_id),
            },
        )
        return ProcessParametersInfo.from_model(row)
