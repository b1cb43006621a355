from pydantic import BaseModel, Field
from typing import Any, Dict, Literal


class ExportReportRequest(BaseModel):
    report_data: Dict[str, Any] = Field(..., alias="reportData")
    format: Literal["txt", "json"] = "json"

    class Config:
        populate_by_name = True
