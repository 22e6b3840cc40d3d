from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from ..services.inventory import is_low_stock


class PartBase(BaseModel):
    name: str
    sku: str = Field(min_length=1)
    description: Optional[str] = None
    category: str
    is_standard: bool = True
    price: float = Field(default=0.0, ge=0)
    quantity: int = Field(default=0, ge=0)
    minimum_stock: int = Field(default=10, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    maintenance_interval: Optional[int] = Field(default=None, ge=0)
    last_restocked: Optional[datetime] = None
    compatible_vehicles: Optional[List[str]] = None

    @field_validator("description", "supplier", "location", "image_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PartCreate(PartBase):
    pass


class PartUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    is_standard: Optional[bool] = None
    price: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    minimum_stock: Optional[int] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    maintenance_interval: Optional[int] = Field(default=None, ge=0)
    last_restocked: Optional[datetime] = None
    compatible_vehicles: Optional[List[str]] = None

    class Config:
        extra = "forbid"


class PartRestock(BaseModel):
    quantity: int = Field(gt=0)


class PartResponse(PartBase):
    id: int

    @computed_field
    @property
    def low_stock(self) -> bool:
        return is_low_stock(self)

    class Config:
        from_attributes = True
