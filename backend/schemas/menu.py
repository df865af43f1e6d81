import uuid
from pydantic import BaseModel


class MenuItemResponse(BaseModel):
    id: uuid.UUID
    product_name: str
    description: str
    amount: float
    category: str
    is_veg: bool
    availability: bool
    image_link: str

    class Config:
        from_attributes = True
