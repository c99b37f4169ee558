"""
precast_services.piece_pricing_service -- Piece price calculation orchestrator.

Responsibility:
    Wire the three kernel reads (BOM Resolver, Zone Price Lookup, Process
    Parameter Lookup) into the pure CostBreakdownCalculator, compare the
    result with the last published price, and hand accepted breakdowns to
    the PiecePricePublisher.

Architecture position:
    Services -- orchestration over engines + kernel.  Stateless apart from
    its injected collaborators; never commits.

Concurrency:
    Material price lookups may fan out over an injected
    ``concurrent.futures`` executor.  Worker threads must not share the
    caller's Session, so an executor requires a thread-safe price source
    (``IsolatedPriceLookup``).  Results are joined before aggregation, and
    the calculation is identical with or without the executor.

Failure modes:
    - PieceNotFoundError / ZoneNotFoundError from the reference lookups.
    - ProcessParametersNotConfiguredError when the piece has formula lines
      and the zone has no parameters for the month or any earlier month.
    - Missing material prices never raise here; they are reported in
      PriceBreakdown.missing_prices and block publishing.

Usage:
    service = PiecePricingService(session, clock=clock)
    result = service.calculate_and_compare(piece_id, zone_id, as_of)
    if result.breakdown.is_complete:
        service.publish(piece_id, zone_id, effective_date, actor_id,
                        breakdown=result.breakdown)
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from precast_config.schema import PrecastSettings
from precast_engines.cost_breakdown import CostBreakdownCalculator
from precast_engines.price_comparison import compare_with_previous
from precast_kernel.domain.clock import Clock, SystemClock
from precast_kernel.domain.dtos import (
    BOMLine,
    MaterialPriceInfo,
    ParameterLookup,
    PriceBreakdown,
    PriceComparison,
    PricingResult,
)
from precast_kernel.domain.money import (
    INTERNAL_DECIMAL_PLACES,
    MONEY_DECIMAL_PLACES,
    ZERO,
)
from precast_kernel.logging_config import LogContext, get_logger
from precast_kernel.selectors.formula_selector import FormulaSelector
from precast_kernel.selectors.material_price_selector import (
    IsolatedPriceLookup,
    MaterialPriceSelector,
)
from precast_kernel.selectors.piece_price_selector import PiecePriceSelector
from precast_kernel.selectors.process_parameter_selector import ProcessParameterSelector
from precast_kernel.selectors.reference_selector import PieceSelector, ZoneSelector
from precast_kernel.services.piece_price_publisher import PiecePricePublisher

logger = get_logger("services.piece_pricing")


class BOMSource(Protocol):
    """Read interface of the BOM Resolver."""

    def resolve_bom(self, piece_id: UUID) -> list[BOMLine]: ...


class PriceSource(Protocol):
    """Read interface of the Zone Price Lookup."""

    def get_current_price(
        self,
        material_id: UUID,
        zone_id: UUID,
        as_of: date,
    ) -> MaterialPriceInfo | None: ...


class ParameterSource(Protocol):
    """Read interface of the Process Parameter Lookup."""

    def get_parameters(self, zone_id: UUID, month: date) -> ParameterLookup: ...


class PiecePricingService:
    """
    Calculates, compares and publishes piece prices.

    Contract:
        Receives the Session and optional read sources via constructor
        injection; defaults are the kernel selectors bound to the session.
        Engines are called with keyword arguments only.

    Guarantees:
        - calculate() is read-only and deterministic for a fixed database
          state and as_of.
        - publish() flushes through PiecePricePublisher; the caller commits.

    Non-goals:
        - Does NOT cache prices between calls.
        - Does NOT own transactions.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        bom_source: BOMSource | None = None,
        price_source: PriceSource | None = None,
        parameter_source: ParameterSource | None = None,
        executor: Executor | None = None,
        internal_decimal_places: int = INTERNAL_DECIMAL_PLACES,
        money_decimal_places: int = MONEY_DECIMAL_PLACES,
    ):
        if executor is not None and price_source is None:
            raise ValueError(
                "A concurrent executor needs a thread-safe price_source "
                "(e.g. IsolatedPriceLookup); the session-bound selector "
                "cannot be shared across threads"
            )
        self._session = session
        self._clock = clock or SystemClock()
        self._bom_source = bom_source or FormulaSelector(session)
        self._price_source = price_source or MaterialPriceSelector(session)
        self._parameter_source = parameter_source or ProcessParameterSelector(session)
        self._executor = executor
        self._owns_executor = False
        self._money_places = money_decimal_places
        self._calculator = CostBreakdownCalculator(internal_decimal_places)

    @classmethod
    def with_fan_out(
        cls,
        session: Session,
        session_factory: sessionmaker[Session],
        max_workers: int,
        clock: Clock | None = None,
        **kwargs,
    ) -> PiecePricingService:
        """
        Build a service whose price lookups run on its own thread pool.

        The pool is shut down by close() or on leaving a ``with`` block.
        With max_workers 0 the lookups stay sequential on ``session``.
        """
        if max_workers <= 0:
            return cls(session, clock, **kwargs)
        service = cls(
            session,
            clock,
            price_source=IsolatedPriceLookup(session_factory),
            executor=ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="price-lookup"
            ),
            **kwargs,
        )
        service._owns_executor = True
        return service

    @classmethod
    def from_settings(
        cls,
        session: Session,
        session_factory: sessionmaker[Session] | None,
        settings: PrecastSettings,
        clock: Clock | None = None,
    ) -> PiecePricingService:
        """
        Build a service from the runtime pricing settings.

        Applies fan_out_workers and both precisions.  session_factory may
        be None only when fan_out_workers is 0.
        """
        pricing = settings.pricing
        precision = dict(
            internal_decimal_places=pricing.internal_decimal_places,
            money_decimal_places=pricing.money_decimal_places,
        )
        if pricing.fan_out_workers == 0:
            return cls(session, clock, **precision)
        if session_factory is None:
            raise ValueError(
                f"pricing.fan_out_workers is {pricing.fan_out_workers}; "
                "a session_factory is required for isolated price lookups"
            )
        return cls.with_fan_out(
            session, session_factory, pricing.fan_out_workers, clock, **precision
        )

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._owns_executor = False

    def __enter__(self) -> PiecePricingService:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _lookup_prices(
        self,
        material_ids: Sequence[UUID],
        zone_id: UUID,
        as_of: date,
    ) -> dict[UUID, MaterialPriceInfo | None]:
        if self._executor is None:
            return {
                material_id: self._price_source.get_current_price(material_id, zone_id, as_of)
                for material_id in material_ids
            }

        futures = {
            material_id: self._executor.submit(
                self._price_source.get_current_price, material_id, zone_id, as_of
            )
            for material_id in material_ids
        }
        logger.debug(
            "price_lookup_fan_out",
            extra={"zone_id": str(zone_id), "lookup_count": len(futures)},
        )
        return {material_id: future.result() for material_id, future in futures.items()}

    def calculate(self, piece_id: UUID, zone_id: UUID, as_of: date) -> PriceBreakdown:
        """
        Calculate the price breakdown of one unit of a piece in a zone.

        A piece without formula lines yields an all-zero breakdown with the
        "no formula defined" warning; no prices or parameters are read.

        Args:
            piece_id: Piece to price.
            zone_id: Zone whose prices and parameters apply.
            as_of: Pricing date; parameters are resolved for its month.

        Returns:
            PriceBreakdown (possibly with missing_prices and warnings).

        Raises:
            PieceNotFoundError, ZoneNotFoundError,
            ProcessParametersNotConfiguredError.
        """
        with LogContext.bind(piece_id=str(piece_id), zone_id=str(zone_id)):
            piece = PieceSelector(self._session).get_piece(piece_id)
            ZoneSelector(self._session).get_zone(zone_id)
            bom = self._bom_source.resolve_bom(piece_id)
            if bom:
                prices = self._lookup_prices([line.material_id for line in bom], zone_id, as_of)
                parameters = self._parameter_source.get_parameters(zone_id, as_of)
            else:
                prices, parameters = {}, None

            return self._calculator.calculate(
                piece=piece,
                zone_id=zone_id,
                as_of=as_of,
                bom=bom,
                prices=prices,
                parameters=parameters,
            )

    def compare(self, piece_id: UUID, zone_id: UUID, new_total: Decimal) -> PriceComparison:
        """
        Compare new_total with the latest price published on or before today.

        "Today" comes from the injected clock.
        """
        previous = PiecePriceSelector(self._session).latest_on_or_before(
            piece_id, zone_id, self._clock.today()
        )
        comparison = compare_with_previous(
            previous_final_price=previous.final_price if previous else None,
            new_total=new_total,
            previous_effective_date=previous.effective_date if previous else None,
            decimal_places=self._money_places,
        )
        logger.info(
            "piece_price_compared",
            extra={
                "piece_id": str(piece_id),
                "zone_id": str(zone_id),
                "trend": comparison.trend.value,
                "delta": str(comparison.delta) if comparison.delta is not None else None,
            },
        )
        return comparison

    def calculate_and_compare(
        self,
        piece_id: UUID,
        zone_id: UUID,
        as_of: date,
    ) -> PricingResult:
        breakdown = self.calculate(piece_id, zone_id, as_of)
        return PricingResult(
            breakdown=breakdown,
            comparison=self.compare(piece_id, zone_id, breakdown.total),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def publish(
        self,
        piece_id: UUID,
        zone_id: UUID,
        effective_date: date,
        actor_id: UUID,
        breakdown: PriceBreakdown | None = None,
        adjustment: Decimal = ZERO,
        allow_without_formula: bool = False,
    ) -> UUID:
        """
        Publish a breakdown, recalculating at effective_date when none is given.

        Returns:
            The id of the new PiecePrice row.

        Raises:
            IncompletePricingError, PriceConflictError, PricingValidationError
            and the NotFound errors of calculate().
        """
        with LogContext.bind(actor_id=str(actor_id)):
            if breakdown is None:
                breakdown = self.calculate(piece_id, zone_id, effective_date)
            publisher = PiecePricePublisher(
                self._session,
                self._clock,
                money_decimal_places=self._money_places,
            )
            return publisher.publish(
                piece_id,
                zone_id,
                effective_date,
                breakdown,
                actor_id,
                adjustment=adjustment,
                allow_without_formula=allow_without_formula,
            )
