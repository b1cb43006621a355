from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException, status

from magicsell.api.deps import get_service
from magicsell.schemas.notification import NotificationCreate, NotificationUpdate, NotificationSend
from magicsell.services.operations import NotificationNotFoundError, OperationsService

router = APIRouter()


@router.get("")
async def list_notifications(service: OperationsService = Depends(get_service)) -> List[Dict[str, Any]]:
    return service.derived["notifications"]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_data: NotificationCreate,
    service: OperationsService = Depends(get_service),
):
    return await service.create_notification(notification_data)


@router.post("/send")
async def send_notification(
    notification_data: NotificationSend,
    service: OperationsService = Depends(get_service),
):
    """Record a push-style notification."""
    notification = await service.send_notification(notification_data)
    return {"success": True, "notification": notification}


@router.put("/{notification_id}")
async def update_notification(
    notification_id: int,
    notification_data: NotificationUpdate,
    service: OperationsService = Depends(get_service),
):
    """Update a notification, e.g. mark it read."""
    try:
        return await service.update_notification(notification_id, notification_data)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")


@router.delete("/{notification_id}")
async def delete_notification(notification_id: int, service: OperationsService = Depends(get_service)):
    try:
        await service.delete_notification(notification_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"message": "Notification deleted successfully"}
