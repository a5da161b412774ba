"""
Saved filters are stored by the browser, so old entries outlive vocabulary
changes. Each entry carries the ``version`` it was written against; upgrading
renames keys that moved and drops keys the collection no longer understands,
reporting them so the client can tell the user instead of silently matching
everything.
"""
from typing import Any, Dict, List, Mapping

from utils.filters import FilterTranslator

SCHEMA_VERSION = 2

# version -> {old key: new key}, applied in order from the entry's version up
KEY_RENAMES: Dict[int, Dict[str, str]] = {
    1: {
        "createdAfter": "createdAtMin",
        "createdBefore": "createdAtMax",
        "quantityMovedMin": "quantityMin",
        "quantityMovedMax": "quantityMax",
        "minAmount": "totalAmountMin",
        "maxAmount": "totalAmountMax",
        "status": "statuses",
        "priority": "priorities",
        "warehouseId": "warehouseIds",
        "productId": "productIds",
        "movementType": "movementTypes",
    },
}


def upgrade_filters(translator: FilterTranslator, filters: Mapping[str, Any], version: int) -> Dict[str, Any]:
    """Return ``{"filters": ..., "dropped": [...]}`` for one saved filter object."""
    upgraded = dict(filters)
    for step in range(version, SCHEMA_VERSION):
        for old, new in KEY_RENAMES.get(step, {}).items():
            if old not in upgraded:
                continue
            value = upgraded.pop(old)
            if new in upgraded:
                # the entry already has the current key; it wins
                continue
            # singular keys became plural membership keys
            if new in translator.memberships and not isinstance(value, list):
                value = [value]
            upgraded[new] = value

    known = set(translator.keys)
    dropped = sorted(key for key in upgraded if key not in known)
    return {
        "filters": {key: value for key, value in upgraded.items() if key in known},
        "dropped": dropped,
    }


def upgrade_saved_filters(translator: FilterTranslator, entries: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    upgraded = []
    for entry in entries:
        version = int(entry.get("version") or 1)
        result = upgrade_filters(translator, entry.get("filters") or {}, version)
        upgraded.append({
            "name": entry.get("name"),
            "version": SCHEMA_VERSION,
            "filters": result["filters"],
            "dropped": result["dropped"],
        })
    return upgraded
