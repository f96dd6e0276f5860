# schemas/reports.py
from datetime import date
from typing import Dict, List
from pydantic import BaseModel

from schemas.order import OrderResponse
from schemas.product import ProductOut

# Best sellers in a reporting window
class ProductSalesData(BaseModel):
    product_id: int
    product_name: str
    quantity_sold: int
    total_revenue: float

# Vendor sales performance
class VendorSalesReport(BaseModel):
    start_date: date
    end_date: date
    total_revenue: float
    total_orders: int
    total_products_sold: int
    products_sold_by_month: Dict[str, int]
    top_selling_products: List[ProductSalesData]
    orders: List[OrderResponse]

# Store-wide sales performance
class AdminSalesReport(BaseModel):
    start_date: date
    end_date: date
    total_revenue: float
    total_orders: int
    revenue_by_status: Dict[str, float]
    orders_by_status: Dict[str, int]
    orders: List[OrderResponse]

# Dashboards
class VendorDashboard(BaseModel):
    vendor_id: int
    total_products: int
    total_stock: int
    total_inventory_value: float
    low_stock_products: int
    out_of_stock_products: int
    recent_orders: List[OrderResponse]
    top_products: List[ProductOut]

class AdminDashboard(BaseModel):
    total_products: int
    total_orders: int
    total_revenue: float
    total_users: int
    total_customers: int
    total_vendors: int
    pending_orders: int
    recent_orders: List[OrderResponse]
