from models.audit_log import AuditLog
from models.warehouses import Warehouse
from models.products import Product
from models.inventories import Inventory
from models.stock_movements import StockMovement
from models.stock_transfers import StockTransfer
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.sales_orders import SalesOrder
from models.sales_order_items import SalesOrderItem

__all__ = ['AuditLog', 'Inventory', 'Product', 'PurchaseOrder', 'PurchaseOrderItem', 'SalesOrder', 'SalesOrderItem', 'StockMovement', 'StockTransfer', 'Warehouse',]
