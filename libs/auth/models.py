from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from libs.common.config import get_settings


class AuthUser(BaseModel):
    """
    Verified identity handed to us by the identity service's token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == get_settings().ADMIN_ROLE

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.email:
            return str(self.email).split("@")[0]
        return "Customer"
