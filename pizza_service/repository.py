"""
Persistence operations for the pizza service.

``PizzaRepository`` is bound to one ``AsyncSession`` and is handed to the
routes through FastAPI dependency injection; nothing here is module-global.
Mutating operations commit their own transaction.
"""

import logging
from typing import Iterable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pizza_service.core.exceptions import NotFound, ValidationError
from pizza_service.core.roles import Role
from pizza_service.core.security import hash_password, token_signature, verify_password
from pizza_service.models import (
    AuthSession,
    DinerOrder,
    Franchise,
    MenuItem,
    OrderItem,
    Store,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)

ORDERS_PER_PAGE = 10


def name_pattern(name: Optional[str]) -> Optional[str]:
    """
    Translate a client name filter into a SQL LIKE pattern.

    ``*`` is the only wildcard; ``%`` and ``_`` are matched literally.
    Returns None when the filter matches everything.
    """
    if not name or name == "*":
        return None
    escaped = name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


class PizzaRepository:
    """Data access for users, sessions, menu, franchises, stores and orders."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _unique(self, write, message: str) -> None:
        """Run ``write`` (flush or commit); a unique-key clash becomes a 400."""
        try:
            await write()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError(message) from None

    # =========================================================================
    # USERS
    # =========================================================================

    async def add_user(
        self,
        name: str,
        email: str,
        password: str,
        roles: Optional[Iterable[tuple[Role, Optional[int]]]] = None,
    ) -> User:
        """Create a user; ``roles`` defaults to a single diner role."""
        if await self.get_user_by_email(email) is not None:
            raise ValidationError("email already registered")

        roles = list(roles) if roles is not None else [(Role.DINER, None)]
        user = User(
            name=name,
            email=email,
            password=await run_in_threadpool(hash_password, password),
            roles=[UserRole(role=role, object_id=object_id) for role, object_id in roles],
        )
        self.session.add(user)
        await self._unique(self.session.commit, "email already registered")
        await self.session.refresh(user)

        logger.info(f"User #{user.id} created with roles {[r.role.value for r in user.roles]}")
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def verify_credentials(self, email: str, password: str) -> Optional[User]:
        user = await self.get_user_by_email(email)
        if user is None or not await run_in_threadpool(verify_password, password, user.password):
            return None
        return user

    async def update_user(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("unknown user")

        if email and email != user.email:
            if await self.get_user_by_email(email) is not None:
                raise ValidationError("email already registered")
            user.email = email
        if name:
            user.name = name
        if password:
            user.password = await run_in_threadpool(hash_password, password)

        await self._unique(self.session.commit, "email already registered")
        await self.session.refresh(user)
        return user

    async def delete_user(self, user_id: int) -> None:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("unknown user")

        await self.session.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
        await self.session.delete(user)
        await self.session.commit()
        logger.info(f"User #{user_id} deleted")

    async def list_users(self, page: int = 1, limit: int = 10, name: Optional[str] = None) -> tuple[list[User], bool]:
        """Return one page of users ordered by id and whether more remain."""
        query = select(User).order_by(User.id)
        pattern = name_pattern(name)
        if pattern is not None:
            query = query.where(User.name.like(pattern, escape="\\"))

        query = query.offset((page - 1) * limit).limit(limit + 1)
        result = await self.session.execute(query)
        users = list(result.scalars().all())
        return users[:limit], len(users) > limit

    async def has_admin(self) -> bool:
        result = await self.session.execute(
            select(func.count(UserRole.id)).where(UserRole.role == Role.ADMIN)
        )
        return (result.scalar() or 0) > 0

    # =========================================================================
    # SESSIONS
    # =========================================================================

    async def login_user(self, user_id: int, token: str) -> None:
        self.session.add(AuthSession(token=token_signature(token), user_id=user_id))
        await self.session.commit()

    async def is_logged_in(self, token: str) -> bool:
        signature = token_signature(token)
        if not signature:
            return False
        result = await self.session.execute(
            select(AuthSession.user_id).where(AuthSession.token == signature)
        )
        return result.first() is not None

    async def logout_user(self, token: str) -> None:
        await self.session.execute(
            delete(AuthSession).where(AuthSession.token == token_signature(token))
        )
        await self.session.commit()

    # =========================================================================
    # MENU
    # =========================================================================

    async def get_menu(self) -> list[MenuItem]:
        result = await self.session.execute(select(MenuItem).order_by(MenuItem.id))
        return list(result.scalars().all())

    async def add_menu_item(self, title: str, description: str, image: str, price: float) -> MenuItem:
        item = MenuItem(title=title, description=description, image=image, price=price)
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)
        return item

    # =========================================================================
    # FRANCHISES & STORES
    # =========================================================================

    async def create_franchise(self, name: str, admin_emails: Iterable[str]) -> tuple[Franchise, list[User]]:
        """
        Create a franchise and grant each admin a franchisee role scoped to it.

        Every admin email must belong to an existing user.
        """
        admins = []
        for email in admin_emails:
            user = await self.get_user_by_email(email)
            if user is None:
                raise NotFound("unknown user for franchisee email")
            admins.append(user)

        if await self.franchise_name_taken(name):
            raise ValidationError("franchise name already exists")

        franchise = Franchise(name=name)
        self.session.add(franchise)
        await self._unique(self.session.flush, "franchise name already exists")

        for admin in admins:
            self.session.add(UserRole(user_id=admin.id, role=Role.FRANCHISEE, object_id=franchise.id))

        await self.session.commit()
        await self.session.refresh(franchise)

        logger.info(f"Franchise #{franchise.id} '{name}' created with {len(admins)} admin(s)")
        return franchise, admins

    async def franchise_name_taken(self, name: str) -> bool:
        result = await self.session.execute(select(Franchise.id).where(Franchise.name == name))
        return result.first() is not None

    async def delete_franchise(self, franchise_id: int) -> None:
        await self.session.execute(
            delete(UserRole).where(
                UserRole.role == Role.FRANCHISEE,
                UserRole.object_id == franchise_id,
            )
        )
        franchise = await self.get_franchise(franchise_id)
        if franchise is not None:
            await self.session.delete(franchise)
        await self.session.commit()
        logger.info(f"Franchise #{franchise_id} deleted")

    async def get_franchise(self, franchise_id: int) -> Optional[Franchise]:
        result = await self.session.execute(select(Franchise).where(Franchise.id == franchise_id))
        return result.scalar_one_or_none()

    async def get_franchise_admins(self, franchise_id: int) -> list[User]:
        result = await self.session.execute(
            select(User)
            .join(UserRole, UserRole.user_id == User.id)
            .where(UserRole.role == Role.FRANCHISEE, UserRole.object_id == franchise_id)
            .order_by(User.id)
        )
        return list(result.scalars().unique().all())

    async def list_franchises(
        self, page: int = 1, limit: int = 10, name: Optional[str] = None
    ) -> tuple[list[Franchise], bool]:
        query = select(Franchise).order_by(Franchise.id)
        pattern = name_pattern(name)
        if pattern is not None:
            query = query.where(Franchise.name.like(pattern, escape="\\"))

        query = query.offset((page - 1) * limit).limit(limit + 1)
        result = await self.session.execute(query)
        franchises = list(result.scalars().all())
        return franchises[:limit], len(franchises) > limit

    async def get_user_franchises(self, user_id: int) -> list[Franchise]:
        franchise_ids = select(UserRole.object_id).where(
            UserRole.user_id == user_id,
            UserRole.role == Role.FRANCHISEE,
        )
        result = await self.session.execute(
            select(Franchise).where(Franchise.id.in_(franchise_ids)).order_by(Franchise.id)
        )
        return list(result.scalars().all())

    async def store_revenue(self, store_ids: Iterable[int]) -> dict[int, float]:
        """Total of all order item prices per store."""
        store_ids = list(store_ids)
        if not store_ids:
            return {}
        result = await self.session.execute(
            select(DinerOrder.store_id, func.sum(OrderItem.price))
            .join(OrderItem, OrderItem.order_id == DinerOrder.id)
            .where(DinerOrder.store_id.in_(store_ids))
            .group_by(DinerOrder.store_id)
        )
        return {store_id: float(total or 0.0) for store_id, total in result.all()}

    async def create_store(
        self,
        franchise_id: int,
        name: str,
        address: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Store:
        store = Store(franchise_id=franchise_id, name=name, address=address, phone=phone)
        self.session.add(store)
        await self.session.commit()
        await self.session.refresh(store)
        return store

    async def get_store(self, franchise_id: int, store_id: int) -> Optional[Store]:
        result = await self.session.execute(
            select(Store).where(Store.id == store_id, Store.franchise_id == franchise_id)
        )
        return result.scalar_one_or_none()

    async def delete_store(self, franchise_id: int, store_id: int) -> bool:
        """Delete a store of the given franchise; False when there is no such store."""
        result = await self.session.execute(
            delete(Store).where(Store.id == store_id, Store.franchise_id == franchise_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def add_diner_order(
        self,
        diner_id: int,
        franchise_id: int,
        store_id: int,
        items: Iterable[tuple[int, str, float]],
    ) -> DinerOrder:
        """
        Persist an order of ``(menu_id, description, price)`` items.

        The store must belong to the franchise and every menu id must exist.
        """
        if await self.get_store(franchise_id, store_id) is None:
            raise NotFound("unknown store for franchise")

        items = list(items)
        menu_ids = {menu_id for menu_id, _, _ in items}
        result = await self.session.execute(select(MenuItem.id).where(MenuItem.id.in_(menu_ids)))
        known = set(result.scalars().all())
        if known != menu_ids:
            raise NotFound("unknown menu item")

        order = DinerOrder(
            diner_id=diner_id,
            franchise_id=franchise_id,
            store_id=store_id,
            items=[
                OrderItem(menu_id=menu_id, description=description, price=price)
                for menu_id, description, price in items
            ],
        )
        self.session.add(order)
        await self.session.commit()
        await self.session.refresh(order)
        return order

    async def get_orders(self, diner_id: int, page: int = 1) -> list[DinerOrder]:
        """One page of a diner's orders, newest first."""
        result = await self.session.execute(
            select(DinerOrder)
            .where(DinerOrder.diner_id == diner_id)
            .order_by(DinerOrder.id.desc())
            .offset((page - 1) * ORDERS_PER_PAGE)
            .limit(ORDERS_PER_PAGE)
        )
        return list(result.scalars().all())
