"""Per-scope brand state that follows the session store's identity."""

import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from nester_engine.brand.schemas import BrandConfiguration, BrandUpdate, default_brand
from nester_engine.brand.service import BrandService, brand_from_record
from nester_engine.common.database import DatabaseManager
from nester_engine.common.exceptions import UnauthorizedError
from nester_engine.identity.provider import Identity, Subscription
from nester_engine.identity.session import SessionStore

logger = logging.getLogger(__name__)

BrandListener = Callable[[BrandConfiguration], Awaitable[None]]


class BrandResolver:
    """Exposes ``brand`` (None until resolved) and ``loading`` for one scope."""

    def __init__(self, session_store: SessionStore, service: BrandService, db: DatabaseManager):
        self.session_store = session_store
        self.service = service
        self.db = db
        self.brand: Optional[BrandConfiguration] = None
        self.loading = True
        self._listeners: list[BrandListener] = []
        self._identity_subscription = session_store.subscribe(self._on_identity)

    async def _on_identity(self, identity: Optional[Identity]) -> None:
        await self.refresh_brand()

    async def refresh_brand(self) -> BrandConfiguration:
        self.loading = True
        identity = self.session_store.identity
        try:
            if identity is None:
                brand = default_brand()
            else:
                async with self.db.get_session() as session:
                    brand = await self.service.resolve(session, identity.id)
        except SQLAlchemyError:
            logger.exception("Error resolving brand")
            brand = default_brand()
        finally:
            self.loading = False
        await self._set(brand)
        return brand

    async def current(self) -> BrandConfiguration:
        """Return the resolved brand, resolving it on first use."""
        if self.brand is None:
            return await self.refresh_brand()
        return self.brand

    async def update_brand(self, update: BrandUpdate) -> BrandConfiguration:
        identity = self.session_store.identity
        if identity is None:
            raise UnauthorizedError()
        async with self.db.get_session() as session:
            record = await self.service.upsert(session, identity.id, update)
            merged = brand_from_record(record)
        await self._set(merged)
        return merged

    async def _set(self, brand: BrandConfiguration) -> None:
        self.brand = brand
        for listener in list(self._listeners):
            await listener(brand)

    def subscribe(self, listener: BrandListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def close(self) -> None:
        self._identity_subscription.unsubscribe()
        self._listeners.clear()
