"""
Login session schemas.

A session is a tagged union on ``role``: ``AdminSession`` or
``DriverSession`` (which carries the driver id). The persisted form is
``{"role": "ADMIN"}`` / ``{"role": "DRIVER", "id": "D1"}``.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter, model_validator

from qgo_dispatch.models.enums import Role
from qgo_dispatch.schemas.base import BaseSchema


class AdminSession(BaseSchema):
    role: Literal["ADMIN"] = "ADMIN"


class DriverSession(BaseSchema):
    role: Literal["DRIVER"] = "DRIVER"
    id: str = Field(..., min_length=1)


Session = Annotated[Union[AdminSession, DriverSession], Field(discriminator="role")]

session_adapter: TypeAdapter[Session] = TypeAdapter(Session)


class LoginRequest(BaseSchema):
    """Credentials posted by the login screen."""
    role: Role
    id: Optional[str] = Field(None, min_length=1, max_length=50)
    password: Optional[str] = Field(None, max_length=72)

    @model_validator(mode="after")
    def driver_needs_id(self) -> "LoginRequest":
        if self.role == Role.DRIVER and not self.id:
            raise ValueError("Driver login requires a driver id")
        return self


class SessionResponse(BaseSchema):
    """Current session (null when logged out)."""
    session: Optional[Session] = None
