"""
Store adapters.

``ListingStore`` and ``UserStore`` wrap a single request-scoped
``AsyncSession`` and expose the small set of operations the services
need: create, find with sort/skip/limit, count, get-by-id, update,
atomic increment and grouped aggregates.  Filters and sort expressions
are plain SQLAlchemy clauses built by the services; the stores never
decide *what* to query, only how to run it.

Stores flush but do not commit; the transaction boundary is owned by the
``get_db`` dependency.
"""
from typing import Any, Iterable, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Car, User

# Primary keys are 32-bit INTEGER columns.  Ids outside this range cannot
# exist, and PostgreSQL rejects them as parameters, so they are answered
# as "no such row" without a query.
MAX_ROW_ID = 2**31 - 1


def _is_row_id(value: int) -> bool:
    return 1 <= value <= MAX_ROW_ID


class ListingStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, values: dict[str, Any]) -> Car:
        car = Car(**values)
        self.db.add(car)
        await self.db.flush()
        await self.db.refresh(car)
        return car

    async def get(self, car_id: int) -> Car | None:
        if not _is_row_id(car_id):
            return None
        # populate_existing: the view counter is bumped with a Core UPDATE, so
        # an instance already in the identity map may hold a stale count.
        return await self.db.get(Car, car_id, populate_existing=True)

    async def find(
        self,
        filters: Iterable = (),
        order_by: Sequence = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Car]:
        q = select(Car).where(*filters).order_by(*order_by).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def count(self, filters: Iterable = ()) -> int:
        q = select(func.count()).select_from(Car).where(*filters)
        return (await self.db.execute(q)).scalar_one()

    async def update(self, car: Car, values: dict[str, Any]) -> Car:
        for field, value in values.items():
            setattr(car, field, value)
        await self.db.flush()
        await self.db.refresh(car)
        return car

    async def increment_views(self, car_id: int) -> int | None:
        """
        Increment ``view_count`` in a single UPDATE ... RETURNING statement
        and return the new value (None when the row does not exist).

        The addition happens in the database, so concurrent views of the
        same listing can never overwrite each other's increments.
        """
        if not _is_row_id(car_id):
            return None
        stmt = (
            update(Car)
            .where(Car.id == car_id)
            .values(view_count=Car.view_count + 1)
            .returning(Car.view_count)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def aggregate(
        self,
        columns: Sequence,
        filters: Iterable = (),
        group_by: Sequence = (),
        order_by: Sequence = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Run a grouped SELECT and return one mapping per result row."""
        q = select(*columns).select_from(Car).where(*filters)
        if group_by:
            q = q.group_by(*group_by)
        if order_by:
            q = q.order_by(*order_by)
        if limit is not None:
            q = q.limit(limit)
        result = await self.db.execute(q)
        return [dict(row) for row in result.mappings().all()]


class UserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, values: dict[str, Any]) -> User:
        user = User(**values)
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get(self, user_id: int) -> User | None:
        if not _is_row_id(user_id):
            return None
        return await self.db.get(User, user_id)

    async def find_by_email(self, email: str, active_only: bool = False) -> User | None:
        q = select(User).where(User.email == email)
        if active_only:
            q = q.where(User.is_active.is_(True))
        return (await self.db.execute(q)).scalar_one_or_none()

    async def find_by_email_or_username(self, email: str, username: str) -> User | None:
        q = select(User).where(or_(User.email == email, User.username == username)).limit(1)
        return (await self.db.execute(q)).scalar_one_or_none()

    async def find_matching_seller(self, seller_name: str) -> User | None:
        """First user whose username, first name or email equals *seller_name*."""
        q = (
            select(User)
            .where(or_(
                User.username == seller_name,
                User.first_name == seller_name,
                User.email == seller_name,
            ))
            .order_by(User.id)
            .limit(1)
        )
        return (await self.db.execute(q)).scalar_one_or_none()

    async def update(self, user: User, values: dict[str, Any]) -> User:
        for field, value in values.items():
            setattr(user, field, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user
