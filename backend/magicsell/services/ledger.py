"""
Order and customer ledger.

The single authoritative, in-process copy of orders and customers. Every
mutation goes through this API, bumps the version and returns an immutable
snapshot that recalculation and persistence work from.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from pydantic import ValidationError

from magicsell.schemas.order import Order, OrderCreate, OrderUpdate, OrderStatus
from magicsell.schemas.customer import Customer, CustomerCreate, CustomerUpdate
from magicsell.services.notifier import utc_now_iso

logger = logging.getLogger(__name__)

# Only these statuses stamp delivery details when moving to Delivered
DELIVERABLE_FROM = {OrderStatus.PENDING.value, OrderStatus.IN_PROCESS.value}


class OrderNotFoundError(LookupError):
    pass


class CustomerNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class LedgerSnapshot:
    version: int
    orders: Tuple[Order, ...]
    customers: Tuple[Customer, ...]
    # Stored records that failed validation, written back unchanged
    unreadable_orders: Tuple[Any, ...] = ()
    unreadable_customers: Tuple[Any, ...] = ()

    def order_records(self) -> List[Dict[str, Any]]:
        return [o.to_record() for o in self.orders] + list(self.unreadable_orders)

    def customer_records(self) -> List[Dict[str, Any]]:
        return [c.to_record() for c in self.customers] + list(self.unreadable_customers)


def record_id(record: Any) -> Optional[int]:
    """Integer id of a raw stored record, or None."""
    if not isinstance(record, dict):
        return None
    try:
        return int(record.get("id"))
    except (TypeError, ValueError):
        return None


def to_iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return utc_now_iso(moment.astimezone(timezone.utc))


def apply_order_patch(order: Order, patch: OrderUpdate, now: Optional[datetime] = None) -> Order:
    """
    Apply a partial update to an order.

    Moving from Pending or In Process to Delivered stamps deliveredAt (kept if
    already present, else the patch value, else now) and deliveryNotes. Outside
    that transition deliveredAt and deliveryNotes are left untouched.
    """
    changes = patch.model_dump(exclude_unset=True, exclude={"delivered_at", "delivery_notes"})
    if patch.status is not None:
        changes["status"] = patch.status.value
    if "payment_method" in changes:
        changes["payment_method"] = patch.payment_method.value if patch.payment_method else ""

    if patch.status == OrderStatus.DELIVERED and order.status in DELIVERABLE_FROM:
        if order.delivered_at:
            changes["delivered_at"] = order.delivered_at
        elif patch.delivered_at is not None:
            changes["delivered_at"] = to_iso(patch.delivered_at)
        else:
            changes["delivered_at"] = utc_now_iso(now)
        if patch.delivery_notes is not None:
            changes["delivery_notes"] = patch.delivery_notes
        else:
            changes["delivery_notes"] = order.delivery_notes or ""

    return order.model_copy(update=changes)


class Ledger:
    """Versioned owner of the order and customer collections."""

    def __init__(
        self,
        orders: Iterable[Order] = (),
        customers: Iterable[Customer] = (),
        unreadable_orders: Iterable[Any] = (),
        unreadable_customers: Iterable[Any] = (),
    ):
        self._orders: Tuple[Order, ...] = tuple(orders)
        self._customers: Tuple[Customer, ...] = tuple(customers)
        self._unreadable_orders: Tuple[Any, ...] = tuple(unreadable_orders)
        self._unreadable_customers: Tuple[Any, ...] = tuple(unreadable_customers)
        self.version = 0

    @classmethod
    def from_records(
        cls,
        order_records: Iterable[Dict[str, Any]],
        customer_records: Iterable[Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> Tuple["Ledger", int]:
        """
        Build a ledger from stored records.

        Orders without createdAt get it back-filled from deliveredAt, or now.
        Records that fail validation are kept aside as-is: they are saved back
        untouched and their ids stay taken, but nothing else sees them.
        Returns the ledger and the number of back-filled orders.
        """
        stamp = utc_now_iso(now)
        orders, unreadable_orders = [], []
        backfilled = 0

        for record in order_records:
            try:
                order = Order.model_validate(record)
            except ValidationError as e:
                logger.error(f"Keeping unreadable order record {record_id(record)!r} as stored: {e.error_count()} validation error(s)")
                unreadable_orders.append(record)
                continue
            if not order.created_at:
                order = order.model_copy(update={"created_at": order.delivered_at or stamp})
                backfilled += 1
            orders.append(order)

        customers, unreadable_customers = [], []
        for record in customer_records:
            try:
                customers.append(Customer.model_validate(record))
            except ValidationError as e:
                logger.error(f"Keeping unreadable customer record {record_id(record)!r} as stored: {e.error_count()} validation error(s)")
                unreadable_customers.append(record)

        if backfilled:
            logger.info(f"Back-filled createdAt on {backfilled} orders")

        return cls(orders, customers, unreadable_orders, unreadable_customers), backfilled

    @property
    def orders(self) -> Tuple[Order, ...]:
        return self._orders

    @property
    def customers(self) -> Tuple[Customer, ...]:
        return self._customers

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            self.version,
            self._orders,
            self._customers,
            self._unreadable_orders,
            self._unreadable_customers,
        )

    def _commit(self, orders=None, customers=None) -> LedgerSnapshot:
        if orders is not None:
            self._orders = tuple(orders)
        if customers is not None:
            self._customers = tuple(customers)
        self.version += 1
        return self.snapshot()

    # Orders

    def get_order(self, order_id: int) -> Order:
        for order in self._orders:
            if order.id == order_id:
                return order
        raise OrderNotFoundError(f"Order {order_id} not found")

    def _order_index(self, order_id: int) -> int:
        for index, order in enumerate(self._orders):
            if order.id == order_id:
                return index
        raise OrderNotFoundError(f"Order {order_id} not found")

    def next_order_id(self) -> int:
        ids = [o.id for o in self._orders]
        ids.extend(i for i in map(record_id, self._unreadable_orders) if i is not None)
        return max(ids, default=0) + 1

    def create_order(self, data: OrderCreate, now: Optional[datetime] = None) -> Tuple[Order, LedgerSnapshot]:
        order_id = self.next_order_id()
        fields = data.model_dump(exclude={"payment_method"})
        order = Order(
            **fields,
            id=order_id,
            basket_no=order_id,
            delivery_no=f"D{order_id:03d}",
            status=OrderStatus.PENDING.value,
            delivery_notes="",
            created_at=utc_now_iso(now),
            delivered_at=None,
            payment_method=data.payment_method.value if data.payment_method else "",
        )
        snapshot = self._commit(orders=self._orders + (order,))
        return order, snapshot

    def update_order(
        self,
        order_id: int,
        patch: OrderUpdate,
        now: Optional[datetime] = None,
    ) -> Tuple[Order, LedgerSnapshot]:
        index = self._order_index(order_id)
        updated = apply_order_patch(self._orders[index], patch, now)
        orders = list(self._orders)
        orders[index] = updated
        return updated, self._commit(orders=orders)

    def delete_order(self, order_id: int) -> LedgerSnapshot:
        index = self._order_index(order_id)
        orders = list(self._orders)
        del orders[index]
        return self._commit(orders=orders)

    # Customers

    def _customer_index(self, customer_id: int) -> int:
        for index, customer in enumerate(self._customers):
            if customer.id == customer_id:
                return index
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    def create_customer(self, data: CustomerCreate) -> Tuple[Customer, LedgerSnapshot]:
        # Length-based id: a deletion followed by a create can reuse an id
        customer = Customer.model_validate({
            **data.model_dump(by_alias=True),
            "id": len(self._customers) + len(self._unreadable_customers) + 1,
        })
        snapshot = self._commit(customers=self._customers + (customer,))
        return customer, snapshot

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Tuple[Customer, LedgerSnapshot]:
        index = self._customer_index(customer_id)
        customer = Customer.model_validate({
            **self._customers[index].to_record(),
            **data.model_dump(by_alias=True, exclude_unset=True),
            "id": customer_id,
        })
        customers = list(self._customers)
        customers[index] = customer
        return customer, self._commit(customers=customers)

    def delete_customer(self, customer_id: int) -> LedgerSnapshot:
        index = self._customer_index(customer_id)
        customers = list(self._customers)
        del customers[index]
        return self._commit(customers=customers)
