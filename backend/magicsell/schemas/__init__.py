from magicsell.schemas.order import Order, OrderCreate, OrderUpdate, OrderFilter, OrderStatus, PaymentMethod
from magicsell.schemas.customer import Customer, CustomerCreate, CustomerUpdate, CustomerPage
from magicsell.schemas.notification import NotificationCreate, NotificationUpdate, NotificationSend
from magicsell.schemas.forecast import AdvancedPredictionRequest, HistoricalPoint
from magicsell.schemas.route import OptimizeRouteRequest, PrintRouteRequest
from magicsell.schemas.report import ExportReportRequest

__all__ = [
    "Order", "OrderCreate", "OrderUpdate", "OrderFilter", "OrderStatus", "PaymentMethod",
    "Customer", "CustomerCreate", "CustomerUpdate", "CustomerPage",
    "NotificationCreate", "NotificationUpdate", "NotificationSend",
    "AdvancedPredictionRequest", "HistoricalPoint",
    "OptimizeRouteRequest", "PrintRouteRequest",
    "ExportReportRequest",
]
