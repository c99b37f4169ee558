"""
ORM-Level Append-Only Enforcement for Price History.

===============================================================================
WHY THIS EXISTS
===============================================================================

Material prices and published piece prices are temporal facts.  Quotations
already sent to customers were computed from them, so a price row that
changed in place would silently rewrite history.  A price change is always
"close the open row, insert a new one".

SQLAlchemy fires events before UPDATE/DELETE reach the database:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | Mutable after insert                 | Never
--------------------|--------------------------------------|---------------------
MaterialPlantPrice  | valid_until (null -> date, once)     | price, valid_from,
                    | is_active (True -> False, withdraw)  | material_id, zone_id,
                    |                                      | DELETE
--------------------|--------------------------------------|---------------------
PiecePrice          | expiry_date (null -> date, once)     | base_price, adjustment,
                    |                                      | effective_date, keys,
                    |                                      | DELETE

updated_at / updated_by_id are audit metadata and may always change.

===============================================================================
USAGE
===============================================================================

    from precast_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Tests that need to stage a forbidden state may call
unregister_immutability_listeners() and re-register afterwards.
"""

from sqlalchemy import event, inspect

from precast_kernel.exceptions import ImmutabilityViolationError
from precast_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})

# field -> (allowed old value, predicate on new value)
MATERIAL_PRICE_CLOSABLE_FIELDS = {
    "valid_until": (None, lambda new: new is not None),
    "is_active": (True, lambda new: new is False),
}

PIECE_PRICE_CLOSABLE_FIELDS = {
    "expiry_date": (None, lambda new: new is not None),
}


def _blocked(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_append_only(entity_type: str, target, closable: dict) -> None:
    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        hist = attr.history
        if not hist.has_changes():
            continue

        rule = closable.get(attr.key)
        if rule is not None:
            allowed_old, accepts_new = rule
            old = hist.deleted[0] if hist.deleted else allowed_old
            new = hist.added[0] if hist.added else None
            if old == allowed_old and accepts_new(new):
                continue
            _blocked(
                entity_type,
                target,
                "UPDATE",
                f"Field '{attr.key}' may only change once ({allowed_old!r} -> value)",
                field=attr.key,
            )

        _blocked(
            entity_type,
            target,
            "UPDATE",
            f"Cannot modify field '{attr.key}' on an append-only price record",
            field=attr.key,
        )


def _check_material_price_immutability(mapper, connection, target):
    """Only closing (valid_until) and withdrawal (is_active) are allowed."""
    _check_append_only("MaterialPlantPrice", target, MATERIAL_PRICE_CLOSABLE_FIELDS)


def _check_material_price_delete(mapper, connection, target):
    _blocked(
        "MaterialPlantPrice",
        target,
        "DELETE",
        "Material price history rows cannot be deleted",
    )


def _check_piece_price_immutability(mapper, connection, target):
    """Only closing (expiry_date) is allowed."""
    _check_append_only("PiecePrice", target, PIECE_PRICE_CLOSABLE_FIELDS)


def _check_piece_price_delete(mapper, connection, target):
    _blocked(
        "PiecePrice",
        target,
        "DELETE",
        "Published piece prices cannot be deleted",
    )


def _listeners():
    from precast_kernel.models.material import MaterialPlantPrice
    from precast_kernel.models.piece_price import PiecePrice

    return (
        (MaterialPlantPrice, "before_update", _check_material_price_immutability),
        (MaterialPlantPrice, "before_delete", _check_material_price_delete),
        (PiecePrice, "before_update", _check_piece_price_immutability),
        (PiecePrice, "before_delete", _check_piece_price_delete),
    )


def register_immutability_listeners():
    """
    Register append-only enforcement listeners.

    Call after models are imported and before any database work.  Safe to
    call more than once.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only enforcement listeners.

    WARNING: Only for tests that must stage a forbidden state.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
