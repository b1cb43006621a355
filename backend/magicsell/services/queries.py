"""Read-side filtering and paging over the ledger."""

from typing import List, Optional, Sequence
import math

from magicsell.schemas.customer import Customer, CustomerPage, Pagination
from magicsell.schemas.order import Order, OrderFilter
from magicsell.services.aggregator import parse_amount
from magicsell.services.bucketing import parse_timestamp


def _contains(value: Optional[object], needle: str) -> bool:
    return value is not None and needle in str(value).lower()


def matches_search(order: Order, term: str) -> bool:
    term = term.lower()
    fields = (
        order.shop_name, order.customer_name, order.customer_phone,
        order.customer_address, order.customer_postcode,
        order.basket_no, order.id, order.delivery_no,
    )
    return any(_contains(value, term) for value in fields)


def filter_orders(orders: Sequence[Order], criteria: OrderFilter) -> List[Order]:
    """
    Apply every given filter; text filters are case-insensitive substring
    matches. Date bounds compare deliveredAt, else createdAt.
    """
    result = list(orders)

    if criteria.search:
        result = [o for o in result if matches_search(o, criteria.search)]
    if criteria.status:
        result = [o for o in result if o.status == criteria.status]
    if criteria.payment_method:
        result = [o for o in result if o.payment_method == criteria.payment_method]
    if criteria.min_amount is not None:
        result = [o for o in result if parse_amount(o.total_amount) >= criteria.min_amount]
    if criteria.max_amount is not None:
        result = [o for o in result if parse_amount(o.total_amount) <= criteria.max_amount]

    if criteria.start_date or criteria.end_date:
        start = parse_timestamp(criteria.start_date)
        end = parse_timestamp(criteria.end_date)
        dated = []
        for order in result:
            moment = parse_timestamp(order.delivered_at or order.created_at)
            if moment is None:
                continue
            if start and moment < start:
                continue
            if end and moment > end:
                continue
            dated.append(order)
        result = dated

    if criteria.shop_name:
        result = [o for o in result if _contains(o.shop_name, criteria.shop_name.lower())]
    if criteria.customer_name:
        result = [o for o in result if _contains(o.customer_name, criteria.customer_name.lower())]
    if criteria.customer_phone:
        result = [o for o in result if _contains(o.customer_phone, criteria.customer_phone.lower())]

    return result


def paginate_customers(
    customers: Sequence[Customer],
    page: int = 1,
    limit: int = 10,
    sort_by: str = "shopName",
    sort_order: str = "asc",
) -> CustomerPage:
    ordered = list(customers)
    if sort_by == "shopName":
        ordered.sort(key=lambda c: (c.shop_name or "").lower(), reverse=sort_order == "desc")

    start = (page - 1) * limit
    end = start + limit

    return CustomerPage(
        customers=ordered[start:end],
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(len(ordered) / limit),
            total_customers=len(ordered),
            customers_per_page=limit,
            has_next_page=end < len(ordered),
            has_prev_page=page > 1,
        ),
    )
