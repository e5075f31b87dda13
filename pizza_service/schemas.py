"""
Pydantic Schemas for Request/Response Validation

Field names are snake_case in Python and camelCase on the wire
(``franchise_id`` <-> ``franchiseId``).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pizza_service.core.roles import Role


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH & USERS
# =============================================================================

class RegisterRequest(CamelModel):
    """Registration body. Presence of every field is checked by the route."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    password: Optional[str] = Field(None, min_length=1)


class RoleOut(CamelModel):
    role: Role
    object_id: Optional[int] = None


class UserOut(CamelModel):
    """A user as returned to clients. The password hash is never included."""
    id: int
    name: str
    email: str
    roles: List[RoleOut] = []


class AuthResponse(CamelModel):
    user: UserOut
    token: str


class UserListResponse(CamelModel):
    users: List[UserOut]
    more: bool


class MessageResponse(CamelModel):
    message: str


# =============================================================================
# MENU
# =============================================================================

class MenuItemCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255, examples=["Veggie"])
    description: str = Field(default="", max_length=1024, examples=["A garden of delight"])
    image: str = Field(default="", max_length=1024, examples=["pizza1.png"])
    price: float = Field(..., ge=0, examples=[0.0038])


class MenuItemOut(CamelModel):
    id: int
    title: str
    description: str
    image: str
    price: float


# =============================================================================
# FRANCHISES & STORES
# =============================================================================

class FranchiseAdminRef(CamelModel):
    email: str


class FranchiseCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["pizzaPocket"])
    admins: List[FranchiseAdminRef] = []


class FranchiseAdminOut(CamelModel):
    id: int
    name: str
    email: str


class StoreCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["SLC"])
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)


class StoreOut(CamelModel):
    id: int
    franchise_id: int
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None


class StoreSummary(CamelModel):
    id: int
    name: str
    total_revenue: Optional[float] = None


class FranchiseOut(CamelModel):
    """
    A franchise as listed to clients.

    ``admins`` and per-store ``total_revenue`` are only filled in for callers
    allowed to see them; routes drop the unset fields.
    """
    id: int
    name: str
    admins: Optional[List[FranchiseAdminOut]] = None
    stores: List[StoreSummary] = []


class FranchiseCreateResponse(CamelModel):
    id: int
    name: str
    admins: List[FranchiseAdminOut]


class FranchiseListResponse(CamelModel):
    franchises: List[FranchiseOut]
    more: bool


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemIn(CamelModel):
    menu_id: int = Field(..., examples=[1])
    description: str = Field(default="", max_length=1024, examples=["Veggie"])
    price: float = Field(..., ge=0, examples=[0.05])


class OrderCreate(CamelModel):
    franchise_id: int = Field(..., examples=[1])
    store_id: int = Field(..., examples=[1])
    items: List[OrderItemIn] = Field(..., min_length=1)


class OrderItemOut(CamelModel):
    id: int
    menu_id: int
    description: str
    price: float


class OrderOut(CamelModel):
    id: int
    franchise_id: int
    store_id: int
    date: Optional[datetime] = None
    items: List[OrderItemOut]


class OrderCreateResponse(CamelModel):
    """Response after placing an order; ``jwt`` is the fulfillment token."""
    order: OrderOut
    jwt: str
    report_url: Optional[str] = None


class OrderListResponse(CamelModel):
    diner_id: int
    orders: List[OrderOut]
    page: int


# =============================================================================
# SERVICE
# =============================================================================

class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    database: str
    factory: str
    timestamp: datetime
