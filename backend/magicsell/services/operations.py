"""
Operations service.

Owns the ledger and the derived collections held in memory, serialises every
mutation, and after each order mutation recalculates analytics, persists the
result and notifies realtime subscribers, in that order.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence
from datetime import date, datetime, timezone
import asyncio
import logging
import re

from magicsell.config import Settings, get_settings
from magicsell.schemas.order import Order, OrderCreate, OrderUpdate
from magicsell.schemas.customer import Customer, CustomerCreate, CustomerUpdate
from magicsell.schemas.notification import NotificationCreate, NotificationUpdate, NotificationSend
from magicsell.services.aggregator import (
    aggregate_bucket,
    day_bucket_id,
    week_bucket_id,
    hourly_breakdown,
    weekday_breakdown,
    ledger_summary,
    parse_amount,
)
from magicsell.services.broadcaster import Broadcaster, DATA_UPDATE, ORDER_UPDATED
from magicsell.services.bucketing import parse_timestamp, day_key, iso_week_key
from magicsell.services.forecaster import ForecastingService
from magicsell.services.ledger import Ledger, LedgerSnapshot, record_id
from magicsell.services.notifier import SYNTHETIC_NOTIFICATION_ID, merge_notifications, utc_now_iso
from magicsell.services.recalculation import DERIVED_COLLECTIONS, recalculate
from magicsell.services.storage import StorageBackend, StorageError

logger = logging.getLogger(__name__)

WEEK_KEY_PATTERN = re.compile(r"^\d{4}-W\d{1,2}$")


class PersistenceError(Exception):
    """A save failed and the service runs with strict persistence."""


class BucketNotFoundError(LookupError):
    pass


class NotificationNotFoundError(LookupError):
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OperationsService:
    """
    Entry point for every ledger mutation.

    Persistence failures are logged and leave the in-memory state in place;
    with ``strict_persistence`` they are raised as PersistenceError instead.
    Subscribers are only notified after a successful save.
    """

    def __init__(
        self,
        storage: StorageBackend,
        broadcaster: Optional[Broadcaster] = None,
        settings: Optional[Settings] = None,
        ledger: Optional[Ledger] = None,
        derived: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.broadcaster = broadcaster or Broadcaster()
        self.settings = settings or get_settings()
        self.ledger = ledger or Ledger()
        self.derived = {name: list((derived or {}).get(name) or []) for name in DERIVED_COLLECTIONS}
        self.forecaster = ForecastingService(self.settings)
        self.clock = clock
        self._lock = asyncio.Lock()

    @classmethod
    def load(
        cls,
        storage: StorageBackend,
        broadcaster: Optional[Broadcaster] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "OperationsService":
        """Load every collection from storage; back-filled orders are saved once."""
        records = storage.load_all()
        ledger, backfilled = Ledger.from_records(records["orders"], records["customers"], now=clock())
        service = cls(storage, broadcaster, settings, ledger, records, clock)

        logger.info(
            "Loaded data: " + ", ".join(f"{name}={len(items)}" for name, items in records.items())
        )
        if backfilled:
            service._persist({"orders": ledger.snapshot().order_records()})
        return service

    # Persistence and broadcast

    def _persist(self, collections: Dict[str, Sequence[Dict[str, Any]]]) -> bool:
        try:
            self.storage.replace_many(collections)
            return True
        except StorageError as e:
            logger.error(f"Error saving {', '.join(collections)}: {e}", exc_info=True)
            if self.settings.strict_persistence:
                raise PersistenceError(str(e)) from e
            return False

    def _recalculate(self, snapshot: LedgerSnapshot) -> Dict[str, List[Dict[str, Any]]]:
        result = recalculate(snapshot.orders, now=self.clock(), forecaster=self.forecaster)
        derived = result.collections()
        derived["notifications"] = merge_notifications(result.notifications, self.derived["notifications"])
        self.derived.update(derived)
        return derived

    def _commit_orders(self, snapshot: LedgerSnapshot) -> bool:
        derived = self._recalculate(snapshot)
        return self._persist({
            "orders": snapshot.order_records(),
            "customers": snapshot.customer_records(),
            **derived,
        })

    def data_payload(self) -> Dict[str, Any]:
        snapshot = self.ledger.snapshot()
        return {"orders": snapshot.order_records(), "customers": snapshot.customer_records()}

    async def _announce(self, order_event: Optional[Dict[str, Any]] = None) -> None:
        await self.broadcaster.broadcast(DATA_UPDATE, self.data_payload())
        if order_event is not None:
            await self.broadcaster.broadcast(ORDER_UPDATED, order_event)

    async def subscribe(self, websocket) -> None:
        await self.broadcaster.connect(websocket)
        await self.broadcaster.send(websocket, DATA_UPDATE, self.data_payload())

    # Orders

    def snapshot(self) -> LedgerSnapshot:
        return self.ledger.snapshot()

    def get_order(self, order_id: int) -> Order:
        return self.ledger.get_order(order_id)

    async def create_order(self, data: OrderCreate) -> Order:
        async with self._lock:
            order, snapshot = self.ledger.create_order(data, now=self.clock())
            saved = self._commit_orders(snapshot)
        logger.info(f"Order {order.id} created (saved={saved})")
        if saved:
            await self._announce({"orderId": order.id, "newOrder": order.to_record()})
        return order

    async def update_order(self, order_id: int, patch: OrderUpdate) -> Order:
        async with self._lock:
            order, snapshot = self.ledger.update_order(order_id, patch, now=self.clock())
            saved = self._commit_orders(snapshot)
        logger.info(f"Order {order_id} updated (saved={saved})")
        if saved:
            await self._announce({"orderId": order_id, "updatedOrder": order.to_record()})
        return order

    async def delete_order(self, order_id: int) -> None:
        async with self._lock:
            snapshot = self.ledger.delete_order(order_id)
            saved = self._commit_orders(snapshot)
        logger.info(f"Order {order_id} deleted (saved={saved})")
        if saved:
            await self._announce({"orderId": order_id, "deleted": True})

    async def force_recalculate(self) -> Dict[str, Any]:
        async with self._lock:
            snapshot = self.ledger.snapshot()
            saved = self._commit_orders(snapshot)
        if saved:
            await self._announce()
        return {
            "dailySales": len(self.derived["dailySales"]),
            "weeklySales": len(self.derived["weeklySales"]),
            "totalOrders": len(snapshot.orders),
            "totalRevenue": sum(parse_amount(o.total_amount) for o in snapshot.orders),
        }

    # Customers

    def _commit_customers(self, snapshot: LedgerSnapshot) -> bool:
        return self._persist({"customers": snapshot.customer_records()})

    async def create_customer(self, data: CustomerCreate) -> Customer:
        async with self._lock:
            customer, snapshot = self.ledger.create_customer(data)
            saved = self._commit_customers(snapshot)
        if saved:
            await self._announce()
        return customer

    async def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        async with self._lock:
            customer, snapshot = self.ledger.update_customer(customer_id, data)
            saved = self._commit_customers(snapshot)
        if saved:
            await self._announce()
        return customer

    async def delete_customer(self, customer_id: int) -> None:
        async with self._lock:
            snapshot = self.ledger.delete_customer(customer_id)
            saved = self._commit_customers(snapshot)
        if saved:
            await self._announce()

    # Analytics reads

    def analytics(self) -> Dict[str, Any]:
        """Whole-ledger summary plus a fresh, unsaved recalculation."""
        snapshot = self.ledger.snapshot()
        now = self.clock()
        result = recalculate(snapshot.orders, now=now, forecaster=self.forecaster)
        return {
            **ledger_summary(snapshot.orders, now=now),
            "dailySales": result.daily_sales,
            "weeklySales": result.weekly_sales,
            "predictions": result.predictions,
            "reports": result.reports,
        }

    def find_bucket(self, collection: str, key_field: str, key: str) -> Dict[str, Any]:
        for bucket in self.derived[collection]:
            if bucket.get(key_field) == key:
                return bucket
        raise BucketNotFoundError(f"No {collection} entry for {key}")

    def _upsert_bucket(self, collection: str, key_field: str, bucket: Dict[str, Any]) -> None:
        buckets = self.derived[collection]
        for index, existing in enumerate(buckets):
            if existing.get(key_field) == bucket[key_field]:
                buckets[index] = bucket
                break
        else:
            buckets.append(bucket)
        self._persist({collection: buckets})

    def _orders_where(self, key_fn: Callable[[datetime], str], key: str) -> List[Order]:
        matched = []
        for order in self.ledger.orders:
            created = parse_timestamp(order.created_at)
            if created is not None and key_fn(created) == key:
                matched.append(order)
        return matched

    async def recompute_day(self, day: str) -> Dict[str, Any]:
        """Recompute and store the bucket of one calendar day (YYYY-MM-DD)."""
        date.fromisoformat(day)  # ValueError on a malformed date
        async with self._lock:
            orders = self._orders_where(day_key, day)
            if not orders:
                raise BucketNotFoundError(f"No orders found for {day}")
            bucket = {
                "id": day_bucket_id(day),
                "date": day,
                **aggregate_bucket(orders).to_dict(),
                "hourlyBreakdown": hourly_breakdown(orders),
            }
            self._upsert_bucket("dailySales", "date", bucket)
        return bucket

    async def recompute_week(self, week: str) -> Dict[str, Any]:
        """Recompute and store the bucket of one ISO week (YYYY-Www)."""
        if not WEEK_KEY_PATTERN.match(week):
            raise ValueError(f"Invalid week {week!r}, expected YYYY-Www")
        week = f"{week[:4]}-W{int(week[6:])}"
        async with self._lock:
            orders = self._orders_where(iso_week_key, week)
            if not orders:
                raise BucketNotFoundError(f"No orders found for week {week}")
            bucket = {
                "id": week_bucket_id(week),
                "week": week,
                **aggregate_bucket(orders).to_dict(),
                "dailyBreakdown": weekday_breakdown(orders),
            }
            self._upsert_bucket("weeklySales", "week", bucket)
        return bucket

    # Notifications

    def _next_notification_id(self) -> int:
        # Never hand out an id already held by a stored notification
        taken = [i for i in map(record_id, self.derived["notifications"]) if i is not None]
        floor = max(taken + [SYNTHETIC_NOTIFICATION_ID])
        try:
            return self.storage.next_id("notifications", floor=floor)
        except StorageError as e:
            logger.error(f"Notification counter unavailable: {e}")
            return floor + 1

    async def _add_notification(self, notification: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            self.derived["notifications"].insert(0, notification)
            saved = self._persist({"notifications": self.derived["notifications"]})
        if saved:
            await self._announce()
        return notification

    async def create_notification(self, data: NotificationCreate) -> Dict[str, Any]:
        fields = data.model_dump(exclude_none=True)
        # Ids are server-assigned; the synthetic flag belongs to derived entries only
        fields.pop("id", None)
        fields.pop("synthetic", None)
        notification = {
            "id": self._next_notification_id(),
            **fields,
            "timestamp": utc_now_iso(self.clock()),
            "read": False,
        }
        return await self._add_notification(notification)

    async def send_notification(self, data: NotificationSend) -> Dict[str, Any]:
        notification = {
            "id": self._next_notification_id(),
            **data.model_dump(),
            "timestamp": utc_now_iso(self.clock()),
            "sent": True,
        }
        return await self._add_notification(notification)

    def _notification_index(self, notification_id: int) -> int:
        for index, notification in enumerate(self.derived["notifications"]):
            if notification.get("id") == notification_id:
                return index
        raise NotificationNotFoundError(f"Notification {notification_id} not found")

    async def update_notification(self, notification_id: int, data: NotificationUpdate) -> Dict[str, Any]:
        async with self._lock:
            index = self._notification_index(notification_id)
            notifications = self.derived["notifications"]
            changes = data.model_dump(exclude_unset=True)
            changes.pop("synthetic", None)
            updated = {**notifications[index], **changes, "id": notification_id}
            notifications[index] = updated
            saved = self._persist({"notifications": notifications})
        if saved:
            await self._announce()
        return updated

    async def delete_notification(self, notification_id: int) -> None:
        async with self._lock:
            index = self._notification_index(notification_id)
            del self.derived["notifications"][index]
            saved = self._persist({"notifications": self.derived["notifications"]})
        if saved:
            await self._announce()
