from pydantic import BaseModel
from typing import Optional


class NotificationCreate(BaseModel):
    type: str = "info"
    message: Optional[str] = None
    title: Optional[str] = None

    class Config:
        extra = "allow"


class NotificationUpdate(BaseModel):
    read: Optional[bool] = None
    message: Optional[str] = None
    title: Optional[str] = None

    class Config:
        extra = "allow"


class NotificationSend(BaseModel):
    title: str
    body: str
    type: str = "info"
    priority: str = "medium"
