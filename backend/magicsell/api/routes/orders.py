from typing import Any, Dict, List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status

from magicsell.api.deps import get_service
from magicsell.schemas.order import Order, OrderCreate, OrderUpdate, OrderFilter
from magicsell.services.ledger import OrderNotFoundError
from magicsell.services.operations import OperationsService
from magicsell.services.queries import filter_orders

router = APIRouter()


def order_filter(
    search: Optional[str] = None,
    status: Optional[str] = None,
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
    min_amount: Optional[float] = Query(None, alias="minAmount"),
    max_amount: Optional[float] = Query(None, alias="maxAmount"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    shop_name: Optional[str] = Query(None, alias="shopName"),
    customer_name: Optional[str] = Query(None, alias="customerName"),
    customer_phone: Optional[str] = Query(None, alias="customerPhone"),
) -> OrderFilter:
    return OrderFilter(
        search=search,
        status=status,
        payment_method=payment_method,
        min_amount=min_amount,
        max_amount=max_amount,
        start_date=start_date,
        end_date=end_date,
        shop_name=shop_name,
        customer_name=customer_name,
        customer_phone=customer_phone,
    )


@router.get("")
async def list_orders(
    criteria: OrderFilter = Depends(order_filter),
    service: OperationsService = Depends(get_service),
) -> List[Dict[str, Any]]:
    """List orders, optionally filtered."""
    orders = filter_orders(service.snapshot().orders, criteria)
    return [o.to_record() for o in orders]


@router.get("/{order_id}")
async def get_order(order_id: int, service: OperationsService = Depends(get_service)):
    try:
        return service.get_order(order_id).to_record()
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(order_data: OrderCreate, service: OperationsService = Depends(get_service)):
    """Create an order; it starts Pending with basket and delivery numbers assigned."""
    order: Order = await service.create_order(order_data)
    return order.to_record()


@router.put("/{order_id}")
async def update_order(
    order_id: int,
    order_data: OrderUpdate,
    service: OperationsService = Depends(get_service),
):
    """Partially update an order. Moving to Delivered stamps the delivery details."""
    try:
        order = await service.update_order(order_id, order_data)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    return order.to_record()


@router.delete("/{order_id}")
async def delete_order(order_id: int, service: OperationsService = Depends(get_service)):
    try:
        await service.delete_order(order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"message": "Order deleted successfully"}
