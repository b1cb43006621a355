from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CustomerBase(BaseModel):
    """Shop name plus free-form contact fields, kept verbatim."""
    shop_name: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"


class CustomerCreate(CustomerBase):
    shop_name: str


class CustomerUpdate(CustomerBase):
    pass


class Customer(CustomerBase):
    id: int

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class Pagination(BaseModel):
    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total_customers: int = Field(..., alias="totalCustomers")
    customers_per_page: int = Field(..., alias="customersPerPage")
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_prev_page: bool = Field(..., alias="hasPrevPage")

    class Config:
        populate_by_name = True


class CustomerPage(BaseModel):
    customers: List[Customer]
    pagination: Pagination
