from sqlalchemy.orm import Session
from models.inventories import Inventory
from utils.exceptions import NotFound

def get_inventory(db: Session, inventory_id: int):
    db_inventory = db.query(Inventory).filter(Inventory.id == inventory_id).first()
    if db_inventory is None:
        raise NotFound("Inventory")
    return db_inventory

def lock_inventory(db: Session, product_id: int, warehouse_id: int, create: bool = False):
    """Balance row for a product in a warehouse, locked for the rest of the transaction.

    With ``create`` a zero balance is added when the product has never been
    stocked there; otherwise ``None`` is returned for a missing row.
    """
    db_inventory = (
        db.query(Inventory)
        .filter(Inventory.product_id == product_id, Inventory.warehouse_id == warehouse_id)
        .with_for_update()
        .first()
    )
    if db_inventory is None and create:
        db_inventory = Inventory(product_id=product_id, warehouse_id=warehouse_id, quantity_on_hand=0, quantity_reserved=0)
        db.add(db_inventory)
        db.flush()
    return db_inventory
