from crud.filter_tables import PURCHASE_ORDER_FILTERS, STOCK_MOVEMENT_FILTERS
from utils.saved_filters import SCHEMA_VERSION, upgrade_filters, upgrade_saved_filters


def test_version_one_keys_are_renamed():
    result = upgrade_filters(PURCHASE_ORDER_FILTERS, {
        "createdAfter": "2025-01-01",
        "minAmount": "100",
        "status": "draft",
        "supplierName": "acme",
    }, version=1)
    assert result == {
        "filters": {
            "createdAtMin": "2025-01-01",
            "totalAmountMin": "100",
            "statuses": ["draft"],
            "supplierName": "acme",
        },
        "dropped": [],
    }


def test_list_values_are_kept_as_lists():
    result = upgrade_filters(STOCK_MOVEMENT_FILTERS, {"movementType": ["transfer_in", "transfer_out"]}, version=1)
    assert result["filters"] == {"movementTypes": ["transfer_in", "transfer_out"]}


def test_current_key_wins_over_renamed_one():
    result = upgrade_filters(STOCK_MOVEMENT_FILTERS, {"quantityMovedMin": 1, "quantityMin": 5}, version=1)
    assert result["filters"] == {"quantityMin": 5}


def test_unknown_keys_are_reported():
    result = upgrade_filters(PURCHASE_ORDER_FILTERS, {"colour": "blue", "statuses": ["draft"]}, version=SCHEMA_VERSION)
    assert result == {"filters": {"statuses": ["draft"]}, "dropped": ["colour"]}


def test_current_version_is_left_alone():
    # "status" is not a current key, so it is dropped rather than renamed
    result = upgrade_filters(PURCHASE_ORDER_FILTERS, {"status": "draft"}, version=SCHEMA_VERSION)
    assert result == {"filters": {}, "dropped": ["status"]}


def test_entries_without_version_count_as_first_version():
    entries = upgrade_saved_filters(STOCK_MOVEMENT_FILTERS, [
        {"name": "Big moves", "filters": {"quantityMovedMin": 100}},
        {"name": "Mine", "version": 2, "filters": {"myMovements": True}},
    ])
    assert entries == [
        {"name": "Big moves", "version": SCHEMA_VERSION, "filters": {"quantityMin": 100}, "dropped": []},
        {"name": "Mine", "version": SCHEMA_VERSION, "filters": {"myMovements": True}, "dropped": []},
    ]
