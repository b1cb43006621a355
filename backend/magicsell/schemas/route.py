from pydantic import BaseModel, Field
from typing import List, Optional

from magicsell.schemas.order import Order


class OptimizeRouteRequest(BaseModel):
    start_postcode: Optional[str] = Field(None, alias="startPostcode")
    orders: List[Order] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class PrintRouteRequest(BaseModel):
    orders: List[Order] = Field(default_factory=list)
