"""
SQLAlchemy Database Models

Users and their roles, login sessions, the menu, franchises with their
stores, and diner orders with their line items.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pizza_service.core.roles import Role
from pizza_service.database import Base


class User(Base):
    """A registered account. ``password`` always holds a hash."""
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    roles = relationship(
        "UserRole",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="UserRole.id",
    )

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


class UserRole(Base):
    """
    One role held by a user.

    ``object_id`` is the franchise id for franchisee roles and NULL otherwise.
    """
    __tablename__ = "userRole"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column("userId", Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(Role), nullable=False)
    object_id = Column("objectId", Integer, nullable=True, index=True)

    def __repr__(self):
        return f"<UserRole {self.role.value}:{self.object_id} for user #{self.user_id}>"


class AuthSession(Base):
    """An active login, keyed by the signature segment of its token."""
    __tablename__ = "auth"

    token = Column(String(512), primary_key=True)
    user_id = Column("userId", Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class MenuItem(Base):
    """Global pizza catalog entry."""
    __tablename__ = "menu"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1024), nullable=False, default="")
    image = Column(String(1024), nullable=False, default="")
    price = Column(Float, nullable=False)


class Franchise(Base):
    __tablename__ = "franchise"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)

    stores = relationship(
        "Store",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Store.id",
    )

    def __repr__(self):
        return f"<Franchise #{self.id} - {self.name}>"


class Store(Base):
    __tablename__ = "store"

    id = Column(Integer, primary_key=True, autoincrement=True)
    franchise_id = Column(
        "franchiseId", Integer, ForeignKey("franchise.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)


class DinerOrder(Base):
    """
    An order placed by a diner at one store.

    Franchise, store and diner ids are plain columns: orders outlive the
    entities they reference.
    """
    __tablename__ = "dinerOrder"

    id = Column(Integer, primary_key=True, autoincrement=True)
    diner_id = Column("dinerId", Integer, nullable=False, index=True)
    franchise_id = Column("franchiseId", Integer, nullable=False, index=True)
    store_id = Column("storeId", Integer, nullable=False, index=True)
    date = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<DinerOrder #{self.id} - diner #{self.diner_id} - store #{self.store_id}>"


class OrderItem(Base):
    __tablename__ = "orderItem"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column("orderId", Integer, ForeignKey("dinerOrder.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column("menuId", Integer, nullable=False)
    description = Column(String(1024), nullable=False, default="")
    price = Column(Float, nullable=False)
