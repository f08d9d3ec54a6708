"""Customer shapes for the admin customer list and the customer portal."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None


class CustomerListItem(CustomerOut):
    registered: bool = Field(description="Whether the customer has a portal login")
    user_email: Optional[str] = Field(default=None, description="Portal login email, if registered")


class CustomerProfileUpdate(BaseModel):
    """Blank strings are ignored and omitted keys are left alone. A null or
    blank profile_picture removes the picture."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
