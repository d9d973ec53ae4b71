"""Tests for the per-scope brand resolver."""

import httpx
import pytest

from nester_engine.brand.resolver import BrandResolver
from nester_engine.brand.schemas import DEFAULT_BRAND, BrandUpdate
from nester_engine.brand.service import BrandService
from nester_engine.common.exceptions import UnauthorizedError
from nester_engine.identity.provider import IdentityProvider
from nester_engine.identity.session import SessionStore

from tests.conftest import AGENT_EMAIL, IDENTITY_URL, PASSWORD


@pytest.fixture
def provider(identity_provider):
    return IdentityProvider(
        IDENTITY_URL, "anon-key", transport=httpx.MockTransport(identity_provider.handler),
    )


async def _scope(provider, db, access=None):
    store = SessionStore(provider.client(access))
    await store.initialize()
    return store, BrandResolver(store, BrandService(), db)


class TestBrandResolver:
    async def test_unresolved_until_first_use(self, provider, db):
        _, resolver = await _scope(provider, db, "token-agent-1")
        assert resolver.brand is None
        assert resolver.loading is True
        brand = await resolver.current()
        assert brand == DEFAULT_BRAND
        assert resolver.loading is False

    async def test_anonymous_gets_default(self, provider, db):
        _, resolver = await _scope(provider, db)
        assert await resolver.current() == DEFAULT_BRAND

    async def test_update_requires_identity(self, provider, db):
        _, resolver = await _scope(provider, db)
        with pytest.raises(UnauthorizedError):
            await resolver.update_brand(BrandUpdate(company_name="Acme"))

    async def test_update_then_refresh_round_trip(self, provider, db):
        _, resolver = await _scope(provider, db, "token-agent-1")
        updated = await resolver.update_brand(BrandUpdate(company_name="Acme", primary_color="#000000"))
        assert resolver.brand == updated
        refreshed = await resolver.refresh_brand()
        assert refreshed == updated
        assert refreshed.mode == "white_label"

    async def test_follows_identity_changes(self, provider, db):
        # agent-1 gets a custom brand
        _, first = await _scope(provider, db, "token-agent-1")
        await first.update_brand(BrandUpdate(company_name="Acme"))

        store, resolver = await _scope(provider, db)
        assert (await resolver.current()).company_name == "Nester"
        await store.sign_in(AGENT_EMAIL, PASSWORD)
        assert resolver.brand.company_name == "Acme"
        await store.sign_out()
        assert resolver.brand == DEFAULT_BRAND

    async def test_subscribers_see_new_brand(self, provider, db):
        _, resolver = await _scope(provider, db, "token-agent-1")
        seen = []

        async def listener(brand):
            seen.append(brand.company_name)

        resolver.subscribe(listener)
        await resolver.update_brand(BrandUpdate(company_name="Acme"))
        assert seen == ["Acme"]

    async def test_close_stops_following_identity(self, provider, db):
        store, resolver = await _scope(provider, db)
        await resolver.current()
        resolver.close()
        await store.sign_in(AGENT_EMAIL, PASSWORD)
        assert resolver.brand == DEFAULT_BRAND

    async def test_data_store_failure_gives_default(self, provider):
        class BrokenDb:
            def get_session(self):
                from sqlalchemy.exc import OperationalError
                raise OperationalError("select", {}, Exception("disk I/O error"))

        store = SessionStore(provider.client("token-agent-1"))
        await store.initialize()
        resolver = BrandResolver(store, BrandService(), BrokenDb())
        assert await resolver.current() == DEFAULT_BRAND
        assert resolver.loading is False
