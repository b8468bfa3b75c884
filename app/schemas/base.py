"""
Base Pydantic schemas
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional
from uuid import UUID


class BaseSchema(BaseModel):
    """Base schema reading from ORM objects"""
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
    )


class CamelRequestSchema(BaseModel):
    """Request body accepting camelCase aliases or field names"""
    model_config = ConfigDict(populate_by_name=True)


class TimestampSchema(BaseSchema):
    """Schema with timestamp fields"""
    created_at: datetime
    updated_at: Optional[datetime] = None


class IDSchema(BaseSchema):
    """Schema with ID field"""
    id: UUID
