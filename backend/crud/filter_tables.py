"""Filter vocabularies for every list endpoint, keyed by collection name."""
from datetime import timedelta

from sqlalchemy import and_, func

from models.inventories import Inventory
from models.products import Product
from models.purchase_orders import PurchaseOrder
from models.sales_orders import SalesOrder
from models.stock_movements import StockMovement
from models.stock_transfers import StockTransfer
from models.warehouses import Warehouse
from utils.filters import (
    DATE,
    DATETIME,
    HIGH_VALUE_THRESHOLD,
    INTEGER,
    NUMBER,
    FilterTranslator,
    RelatedText,
)
from utils.order_status import PURCHASE_ORDER_WORKFLOW, SALES_ORDER_WORKFLOW, STOCK_TRANSFER_WORKFLOW

RECENT_DAYS = 7
UNPAID_STATUSES = ("pending", "partial", "overdue")


def _recent(column):
    return lambda ctx: column >= ctx.moment - timedelta(days=RECENT_DAYS)


PURCHASE_ORDER_FILTERS = FilterTranslator(
    name="purchase_orders",
    text={
        "poNumber": PurchaseOrder.po_number,
        "supplierName": PurchaseOrder.supplier_name,
        "supplierEmail": PurchaseOrder.supplier_email,
        "supplierReference": PurchaseOrder.supplier_reference,
        "notes": PurchaseOrder.notes,
    },
    ranges={
        "totalAmount": (PurchaseOrder.total_amount, NUMBER),
        "subtotal": (PurchaseOrder.subtotal, NUMBER),
        "createdAt": (PurchaseOrder.created_at, DATETIME),
        "approvedAt": (PurchaseOrder.approved_at, DATETIME),
        "expectedDeliveryDate": (PurchaseOrder.expected_delivery_date, DATE),
    },
    memberships={
        "statuses": (PurchaseOrder.status, "str"),
        "priorities": (PurchaseOrder.priority, "str"),
        "warehouseIds": (PurchaseOrder.warehouse_id, "int"),
        "createdBy": (PurchaseOrder.created_by, "str"),
    },
    quick={
        "myOrders": lambda ctx: PurchaseOrder.created_by == ctx.user_id,
        "isUrgent": lambda ctx: PurchaseOrder.priority == "urgent",
        "pendingApproval": lambda ctx: PurchaseOrder.status == "pending_approval",
        "overdue": lambda ctx: and_(
            PurchaseOrder.expected_delivery_date < ctx.moment.date(),
            PurchaseOrder.status.notin_(PURCHASE_ORDER_WORKFLOW.inactive),
        ),
        "recent": _recent(PurchaseOrder.created_at),
        "highValue": lambda ctx: PurchaseOrder.total_amount >= HIGH_VALUE_THRESHOLD,
    },
    search=[
        PurchaseOrder.po_number,
        PurchaseOrder.supplier_name,
        PurchaseOrder.supplier_reference,
        PurchaseOrder.notes,
    ],
)


_sales_delivery_date = func.coalesce(SalesOrder.promised_delivery_date, SalesOrder.requested_delivery_date)

SALES_ORDER_FILTERS = FilterTranslator(
    name="sales_orders",
    text={
        "soNumber": SalesOrder.so_number,
        "customerName": SalesOrder.customer_name,
        "customerEmail": SalesOrder.customer_email,
        "customerReference": SalesOrder.customer_reference,
        "trackingNumber": SalesOrder.tracking_number,
        "notes": SalesOrder.notes,
    },
    ranges={
        "totalAmount": (SalesOrder.total_amount, NUMBER),
        "subtotal": (SalesOrder.subtotal, NUMBER),
        "createdAt": (SalesOrder.created_at, DATETIME),
        "requestedDeliveryDate": (SalesOrder.requested_delivery_date, DATE),
        "promisedDeliveryDate": (SalesOrder.promised_delivery_date, DATE),
    },
    memberships={
        "statuses": (SalesOrder.status, "str"),
        "priorities": (SalesOrder.priority, "str"),
        "paymentStatuses": (SalesOrder.payment_status, "str"),
        "warehouseIds": (SalesOrder.warehouse_id, "int"),
        "createdBy": (SalesOrder.created_by, "str"),
    },
    quick={
        "myOrders": lambda ctx: SalesOrder.created_by == ctx.user_id,
        "isUrgent": lambda ctx: SalesOrder.priority == "urgent",
        "pendingApproval": lambda ctx: SalesOrder.status == "pending_approval",
        "overdue": lambda ctx: and_(
            _sales_delivery_date < ctx.moment.date(),
            SalesOrder.status.notin_(SALES_ORDER_WORKFLOW.inactive),
        ),
        "recent": _recent(SalesOrder.created_at),
        "highValue": lambda ctx: SalesOrder.total_amount >= HIGH_VALUE_THRESHOLD,
        "unpaid": lambda ctx: SalesOrder.payment_status.in_(UNPAID_STATUSES),
    },
    search=[
        SalesOrder.so_number,
        SalesOrder.customer_name,
        SalesOrder.customer_reference,
        SalesOrder.tracking_number,
    ],
)


PRODUCT_FILTERS = FilterTranslator(
    name="products",
    text={
        "name": Product.name,
        "sku": Product.sku,
        "category": Product.category,
        "description": Product.description,
    },
    ranges={
        "unitCost": (Product.unit_cost, NUMBER),
        "unitPrice": (Product.unit_price, NUMBER),
        "reorderLevel": (Product.reorder_level, INTEGER),
        "createdAt": (Product.created_at, DATETIME),
    },
    memberships={
        "categories": (Product.category, "str"),
        "ids": (Product.id, "int"),
    },
    quick={
        "active": lambda ctx: Product.is_active.is_(True),
        "myProducts": lambda ctx: Product.created_by == ctx.user_id,
        "recent": _recent(Product.created_at),
    },
    search=[Product.name, Product.sku, Product.description],
)


WAREHOUSE_FILTERS = FilterTranslator(
    name="warehouses",
    text={
        "name": Warehouse.name,
        "code": Warehouse.code,
        "city": Warehouse.city,
        "country": Warehouse.country,
    },
    ranges={
        "capacity": (Warehouse.capacity, INTEGER),
        "createdAt": (Warehouse.created_at, DATETIME),
    },
    memberships={
        "countries": (Warehouse.country, "str"),
        "ids": (Warehouse.id, "int"),
    },
    quick={
        "active": lambda ctx: Warehouse.is_active.is_(True),
    },
    search=[Warehouse.name, Warehouse.code, Warehouse.city],
)


_inventory_product_name = RelatedText(Inventory.product, Product.name)
_inventory_product_sku = RelatedText(Inventory.product, Product.sku)

INVENTORY_FILTERS = FilterTranslator(
    name="inventories",
    text={
        "productName": _inventory_product_name,
        "productSku": _inventory_product_sku,
        "warehouseName": RelatedText(Inventory.warehouse, Warehouse.name),
    },
    ranges={
        "quantityOnHand": (Inventory.quantity_on_hand, INTEGER),
        "quantityReserved": (Inventory.quantity_reserved, INTEGER),
    },
    memberships={
        "productIds": (Inventory.product_id, "int"),
        "warehouseIds": (Inventory.warehouse_id, "int"),
    },
    quick={
        "lowStock": lambda ctx: Inventory.product.has(and_(
            Product.reorder_level.isnot(None),
            Inventory.quantity_on_hand <= Product.reorder_level,
        )),
        "outOfStock": lambda ctx: Inventory.quantity_on_hand <= 0,
    },
    search=[_inventory_product_name, _inventory_product_sku],
)


_movement_product_name = RelatedText(StockMovement.product, Product.name)

STOCK_MOVEMENT_FILTERS = FilterTranslator(
    name="stock_movements",
    text={
        "referenceNumber": StockMovement.reference_number,
        "reason": StockMovement.reason,
        "notes": StockMovement.notes,
        "productName": _movement_product_name,
        "warehouseName": RelatedText(StockMovement.warehouse, Warehouse.name),
    },
    ranges={
        # magnitude, so decreases are matched by size too
        "quantity": (func.abs(StockMovement.quantity_moved), INTEGER),
        "quantityBefore": (StockMovement.quantity_before, INTEGER),
        "quantityAfter": (StockMovement.quantity_after, INTEGER),
        "unitCost": (StockMovement.unit_cost, NUMBER),
        "totalValue": (StockMovement.total_value, NUMBER),
        "createdAt": (StockMovement.created_at, DATETIME),
    },
    memberships={
        "movementTypes": (StockMovement.movement_type, "str"),
        "statuses": (StockMovement.status, "str"),
        "productIds": (StockMovement.product_id, "int"),
        "warehouseIds": (StockMovement.warehouse_id, "int"),
        "userIds": (StockMovement.user_id, "str"),
        "relatedDocumentTypes": (StockMovement.related_document_type, "str"),
    },
    quick={
        "myMovements": lambda ctx: StockMovement.user_id == ctx.user_id,
        "recentMovements": _recent(StockMovement.created_at),
        "pendingApproval": lambda ctx: StockMovement.status == "pending",
        "highValueMovements": lambda ctx: StockMovement.total_value > HIGH_VALUE_THRESHOLD,
        "hasApprover": lambda ctx: StockMovement.approved_by.isnot(None),
        "hasDocumentReference": lambda ctx: StockMovement.related_document_id.isnot(None),
        "increasesOnly": lambda ctx: StockMovement.quantity_moved > 0,
        "decreasesOnly": lambda ctx: StockMovement.quantity_moved < 0,
    },
    search=[StockMovement.reference_number, StockMovement.reason, _movement_product_name],
)


_transfer_product_name = RelatedText(StockTransfer.product, Product.name)

STOCK_TRANSFER_FILTERS = FilterTranslator(
    name="stock_transfers",
    text={
        "referenceNumber": StockTransfer.reference_number,
        "notes": StockTransfer.notes,
        "productName": _transfer_product_name,
        "fromWarehouseName": RelatedText(StockTransfer.from_warehouse, Warehouse.name),
        "toWarehouseName": RelatedText(StockTransfer.to_warehouse, Warehouse.name),
    },
    ranges={
        "quantity": (StockTransfer.quantity_transferred, INTEGER),
        "createdAt": (StockTransfer.created_at, DATETIME),
        "completedAt": (StockTransfer.completed_at, DATETIME),
    },
    memberships={
        "statuses": (StockTransfer.status, "str"),
        "productIds": (StockTransfer.product_id, "int"),
        "fromWarehouseIds": (StockTransfer.from_warehouse_id, "int"),
        "toWarehouseIds": (StockTransfer.to_warehouse_id, "int"),
        "createdBy": (StockTransfer.created_by, "str"),
    },
    quick={
        "myTransfers": lambda ctx: StockTransfer.created_by == ctx.user_id,
        "pendingApproval": lambda ctx: StockTransfer.status == "pending",
        "inTransit": lambda ctx: StockTransfer.status == "in_transit",
        "open": lambda ctx: StockTransfer.status.notin_(STOCK_TRANSFER_WORKFLOW.inactive),
        "recent": _recent(StockTransfer.created_at),
    },
    search=[StockTransfer.reference_number, StockTransfer.notes, _transfer_product_name],
)


FILTER_TABLES = {
    table.name: table
    for table in (
        PURCHASE_ORDER_FILTERS,
        SALES_ORDER_FILTERS,
        PRODUCT_FILTERS,
        WAREHOUSE_FILTERS,
        INVENTORY_FILTERS,
        STOCK_MOVEMENT_FILTERS,
        STOCK_TRANSFER_FILTERS,
    )
}
