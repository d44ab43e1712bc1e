from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class MeasurementBase(BaseModel):
    height_cm: Optional[float] = Field(None, gt=0)
    bust_cm: Optional[float] = Field(None, gt=0)
    waist_cm: Optional[float] = Field(None, gt=0)
    hip_cm: Optional[float] = Field(None, gt=0)
    shoulder_cm: Optional[float] = Field(None, gt=0)
    arm_length_cm: Optional[float] = Field(None, gt=0)
    inseam_cm: Optional[float] = Field(None, gt=0)
    chest_cm: Optional[float] = Field(None, gt=0)
    neck_cm: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None


class MeasurementCreate(MeasurementBase):
    pass


class MeasurementUpdate(MeasurementBase):
    is_primary: Optional[bool] = None


class MeasurementResponse(MeasurementBase):
    id: str
    customer_id: str
    is_primary: bool
    created_at: datetime
    updated_at: datetime
