from .customers import Customer
from .auth import User, SessionToken
from .security import SecurityEvent
from .inventory import Product, InventoryTransaction
from .orders import Order, OrderItem
from .billing import PaymentTerm, Invoice, Payment
from .shipping import ShippingCarrier, Shipment, ShipmentItem, FulfillmentTask
from .customizations import CustomizationRequest, WorkflowStep, CustomizationComment
from .documents import DocumentSequence

__all__ = [
    'Customer',
    'User', 'SessionToken', 'SecurityEvent',
    'Product', 'InventoryTransaction',
    'Order', 'OrderItem',
    'PaymentTerm', 'Invoice', 'Payment',
    'ShippingCarrier', 'Shipment', 'ShipmentItem', 'FulfillmentTask',
    'CustomizationRequest', 'WorkflowStep', 'CustomizationComment',
    'DocumentSequence',
]
