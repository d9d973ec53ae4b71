"""Brand API router."""

from fastapi import APIRouter, Request

from nester_engine.brand.schemas import BrandResponse, BrandUpdate
from nester_engine.brand.service import brand_css_variables
from nester_engine.common.handlers import guarded
from nester_engine.scope import use_brand

router = APIRouter(prefix="/api/brand", tags=["brand"])


@router.get("", response_model=BrandResponse)
async def get_brand(request: Request):
    resolver = use_brand(request)
    brand = await resolver.current()
    return BrandResponse(brand=brand, loading=resolver.loading, css_variables=brand_css_variables(brand))


@router.patch("", response_model=BrandResponse)
async def update_brand(body: BrandUpdate, request: Request):
    async with guarded("Brand update"):
        resolver = use_brand(request)
        brand = await resolver.update_brand(body)
        return BrandResponse(brand=brand, css_variables=brand_css_variables(brand))


@router.post("/refresh", response_model=BrandResponse)
async def refresh_brand(request: Request):
    resolver = use_brand(request)
    brand = await resolver.refresh_brand()
    return BrandResponse(brand=brand, css_variables=brand_css_variables(brand))
