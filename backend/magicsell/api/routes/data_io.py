"""
Data Export and Storage API Routes

Provides endpoints for:
- Order and sales collection export (CSV/Excel)
- Storage statistics
"""

from io import BytesIO
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from magicsell.api.deps import get_service
from magicsell.services.exports import collection_export
from magicsell.services.operations import OperationsService
from magicsell.services.storage import StorageError

router = APIRouter()

EXPORTS = {
    "orders": ("orders", "Orders"),
    "daily-sales": ("dailySales", "Daily Sales"),
    "weekly-sales": ("weeklySales", "Weekly Sales"),
}


@router.get("/data/export/{dataset}")
async def export_dataset(
    dataset: str,
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    service: OperationsService = Depends(get_service),
):
    """Export orders, daily sales or weekly sales to CSV or Excel."""
    if dataset not in EXPORTS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown dataset. Choose from: {', '.join(EXPORTS)}"
        )

    collection, sheet = EXPORTS[dataset]
    if collection == "orders":
        records = service.snapshot().order_records()
    else:
        records = service.derived[collection]

    content, media_type = collection_export(records, sheet, format)
    filename = f"{dataset}_{service.clock().date().isoformat()}.{format}"
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/storage/stats")
async def storage_stats(service: OperationsService = Depends(get_service)):
    """Record counts per stored collection."""
    try:
        counts = service.storage.stats()
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"backend": service.storage.name, "collections": counts}
