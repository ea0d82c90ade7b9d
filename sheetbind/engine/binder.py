from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sheetbind.models.schema import DuplicatePolicy, SlotShape, SlotSpec
from sheetbind.engine.errors import DuplicateKeyError, InvalidKeyError

"""Container binder.

One bind function per SlotShape; bind() dispatches on the slot's declared
shape and never inspects the destination's annotations at bind time.

- SINGLE    overwrite, last record wins
- LIST      created on first write, then appended in place
- ARRAY     tuple rebuilt with one extra element per record
- MAP       created on first write; collisions follow the slot's DuplicatePolicy
- MULTIMAP  one-element collection on first write for a key, grown on collision
"""

__all__ = [
    "bind",
    "BINDERS",
]

logger = logging.getLogger(__name__)


def _bind_single(container: Any, slot: SlotSpec, key: Any, instance: Any, sheet: str) -> bool:
    setattr(container, slot.field, instance)
    return True


def _bind_list(container: Any, slot: SlotSpec, key: Any, instance: Any, sheet: str) -> bool:
    current = getattr(container, slot.field, None)
    if current is None:
        current = []
        setattr(container, slot.field, current)
    elif not isinstance(current, list):
        return _shape_mismatch(slot, current, sheet)
    current.append(instance)
    return True


def _bind_array(container: Any, slot: SlotSpec, key: Any, instance: Any, sheet: str) -> bool:
    current = getattr(container, slot.field, None)
    if current is None:
        current = ()
    elif not isinstance(current, tuple):
        return _shape_mismatch(slot, current, sheet)
    setattr(container, slot.field, current + (instance,))
    return True


def _map_of(container: Any, slot: SlotSpec, sheet: str) -> dict | None:
    current = getattr(container, slot.field, None)
    if current is None:
        current = {}
        setattr(container, slot.field, current)
    elif not isinstance(current, dict):
        _shape_mismatch(slot, current, sheet)
        return None
    return current


def _reject_missing_key(slot: SlotSpec, sheet: str) -> bool:
    if slot.binding.duplicates is DuplicatePolicy.REJECT:
        raise DuplicateKeyError(sheet, slot.field, None)
    logger.warning("sheet %s record without key skipped for map slot '%s'", sheet, slot.field)
    return False


def _reject_unhashable_key(slot: SlotSpec, key: Any, sheet: str) -> bool:
    if slot.binding.duplicates is DuplicatePolicy.REJECT:
        raise InvalidKeyError(sheet, slot.field, key)
    logger.warning(
        "sheet %s record with unhashable key %r skipped for map slot '%s'", sheet, key, slot.field
    )
    return False


def _check_key(slot: SlotSpec, key: Any, sheet: str) -> bool | None:
    """None when ``key`` is usable, otherwise the bind result after rejecting it."""
    if key is None:
        return _reject_missing_key(slot, sheet)
    try:
        hash(key)
    except TypeError:
        return _reject_unhashable_key(slot, key, sheet)
    return None


def _bind_map(container: Any, slot: SlotSpec, key: Any, instance: Any, sheet: str) -> bool:
    rejected = _check_key(slot, key, sheet)
    if rejected is not None:
        return rejected
    mapping = _map_of(container, slot, sheet)
    if mapping is None:
        return False
    if key in mapping:
        policy = slot.binding.duplicates
        if policy is DuplicatePolicy.REJECT:
            raise DuplicateKeyError(sheet, slot.field, key)
        if policy is DuplicatePolicy.SKIP:
            logger.debug("sheet %s duplicate key '%s' skipped in slot '%s'", sheet, key, slot.field)
            return False
    mapping[key] = instance
    return True


def _bind_multimap(container: Any, slot: SlotSpec, key: Any, instance: Any, sheet: str) -> bool:
    rejected = _check_key(slot, key, sheet)
    if rejected is not None:
        return rejected
    mapping = _map_of(container, slot, sheet)
    if mapping is None:
        return False
    existing = mapping.get(key)
    if existing is None:
        mapping[key] = [instance] if slot.collection is list else (instance,)
    elif isinstance(existing, list):
        existing.append(instance)
    elif isinstance(existing, tuple):
        mapping[key] = existing + (instance,)
    else:
        return _shape_mismatch(slot, existing, sheet)
    return True


def _shape_mismatch(slot: SlotSpec, current: Any, sheet: str) -> bool:
    logger.warning(
        "sheet %s slot '%s' declared %s but holds %s; record dropped",
        sheet,
        slot.field,
        slot.shape.value,
        type(current).__name__,
    )
    return False


BINDERS: dict[SlotShape, Callable[[Any, SlotSpec, Any, Any, str], bool]] = {
    SlotShape.SINGLE: _bind_single,
    SlotShape.LIST: _bind_list,
    SlotShape.ARRAY: _bind_array,
    SlotShape.MAP: _bind_map,
    SlotShape.MULTIMAP: _bind_multimap,
}


def bind(container: Any, slot: SlotSpec, key: Any, instance: Any, *, sheet: str = "") -> bool:
    """Store one record into ``slot`` on ``container``.

    Returns:
        True when the record was stored, False when it was dropped (type or
        shape mismatch, duplicate under SKIP, missing or unhashable key under
        SKIP/OVERWRITE)

    Raises:
        DuplicateKeyError: key collision (or missing key) under REJECT
        InvalidKeyError: unhashable key under REJECT
    """
    if not isinstance(instance, slot.record.record_type):
        logger.warning(
            "sheet %s slot '%s' expects %s, got %s; record dropped",
            sheet,
            slot.field,
            slot.record.record_type.__name__,
            type(instance).__name__,
        )
        return False
    return BINDERS[slot.shape](container, slot, key, instance, sheet)
