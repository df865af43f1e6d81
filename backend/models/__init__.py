from models.admins import Admin
from models.customers import Customer
from models.otp_logs import OtpLog
from models.menu_items import MenuItem
from models.orders import Order
from models.order_lines import OrderLine
from models.bills import Bill
from models.bill_lines import BillLine

__all__ = [
    "Admin",
    "Customer",
    "OtpLog",
    "MenuItem",
    "Order",
    "OrderLine",
    "Bill",
    "BillLine",
]
