from fastapi import APIRouter, Depends, HTTPException, Query, status

from magicsell.api.deps import get_service
from magicsell.schemas.customer import CustomerCreate, CustomerUpdate, CustomerPage
from magicsell.services.ledger import CustomerNotFoundError
from magicsell.services.operations import OperationsService
from magicsell.services.queries import paginate_customers

router = APIRouter()


@router.get("", response_model=CustomerPage, response_model_by_alias=True)
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    sort_by: str = Query("shopName", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    service: OperationsService = Depends(get_service),
):
    """List customers sorted by shop name, one page at a time."""
    return paginate_customers(service.snapshot().customers, page, limit, sort_by, sort_order)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_customer(customer_data: CustomerCreate, service: OperationsService = Depends(get_service)):
    customer = await service.create_customer(customer_data)
    return customer.to_record()


@router.put("/{customer_id}")
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    service: OperationsService = Depends(get_service),
):
    try:
        customer = await service.update_customer(customer_id, customer_data)
    except CustomerNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer.to_record()


@router.delete("/{customer_id}")
async def delete_customer(customer_id: int, service: OperationsService = Depends(get_service)):
    try:
        await service.delete_customer(customer_id)
    except CustomerNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"message": "Customer deleted successfully"}
