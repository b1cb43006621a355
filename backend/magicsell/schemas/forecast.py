from pydantic import BaseModel, Field
from typing import List, Optional, Union


class HistoricalPoint(BaseModel):
    value: Optional[Union[float, str]] = None
    date: Optional[str] = None

    class Config:
        extra = "allow"


class AdvancedPredictionRequest(BaseModel):
    type: str = "revenue"
    timeframe: str = Field("7days", description="7days, 30days, or anything else for 90 days")
    historical_data: List[HistoricalPoint] = Field(default_factory=list, alias="historicalData")

    class Config:
        populate_by_name = True
