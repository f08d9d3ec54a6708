"""
PawCare Backend — Authentication Schemas
==========================================

What:  Login, registration, password and profile request bodies for both
       identities, and the identity shapes returned by the check endpoints.

Password fields are never echoed back and never appear in any response model.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer


class AdminLoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    remember: bool = Field(default=False, description="Keep the session for 30 days")


class CustomerLoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    remember: bool = Field(default=False, description="Keep the session for 30 days")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class AdminProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = None
    email: Optional[str] = None
    profile_picture: Optional[str] = None


class AdminIdentity(BaseModel):
    id: Optional[int] = None
    username: str
    email: Optional[str] = None
    profile_picture: Optional[str] = None


class CustomerIdentity(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None


class AdminCheck(BaseModel):
    authenticated: bool
    user: Optional[AdminIdentity] = None

    @model_serializer(mode="wrap")
    def _omit_anonymous_user(self, handler: SerializerFunctionWrapHandler):
        return {key: value for key, value in handler(self).items() if value is not None}


class CustomerCheck(BaseModel):
    authenticated: bool
    user: Optional[CustomerIdentity] = None

    @model_serializer(mode="wrap")
    def _omit_anonymous_user(self, handler: SerializerFunctionWrapHandler):
        return {key: value for key, value in handler(self).items() if value is not None}
