from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    ordered = "ordered"
    received = "received"
    cancelled = "cancelled"


class OrderItemInput(BaseModel):
    part_id: int
    quantity: int = Field(gt=0)
    price: Optional[float] = Field(default=None, ge=0)  # Defaults to the part's current price


class OrderItemCreate(OrderItemInput):
    order_id: int


class OrderItemUpdate(BaseModel):
    part_id: Optional[int] = None
    quantity: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)

    class Config:
        extra = "forbid"
        use_enum_values = True


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    part_id: int
    quantity: int
    price: float

    class Config:
        from_attributes = True


class OrderBase(BaseModel):
    supplier: Optional[str] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class OrderCreate(OrderBase):
    created_by: Optional[int] = None  # Defaults to the caller
    status: OrderStatus = OrderStatus.pending
    items: Optional[List[OrderItemInput]] = None

    class Config:
        use_enum_values = True


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    supplier: Optional[str] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


class OrderResponse(OrderBase):
    id: int
    order_number: str
    status: OrderStatus
    created_by: int
    created_date: datetime
    ordered_date: Optional[datetime] = None
    received_date: Optional[datetime] = None

    class Config:
        from_attributes = True
