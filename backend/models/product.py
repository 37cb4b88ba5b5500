from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: str = ""

    price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100)

    instock: bool = True


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None

    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)

    instock: Optional[bool] = None


def discounted_total(price: float, discount: float, quantity: int) -> float:
    unit_price = price * (1 - (discount or 0) / 100)
    return round(unit_price * quantity, 2)
