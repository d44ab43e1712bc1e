from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class DesignResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    garment_type: str
    model_url: str
    thumbnail_url: Optional[str] = None
    color_options: List[str] = []
    size_range: Optional[str] = None
    created_at: datetime
