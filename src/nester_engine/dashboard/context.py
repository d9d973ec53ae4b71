"""Shared view-model helpers for the dashboard."""

from starlette.requests import Request

from nester_engine.brand.schemas import BrandConfiguration
from nester_engine.brand.service import brand_css_variables
from nester_engine.identity.provider import Identity

NAV_ITEMS = [
    {"label": "Overview", "url": "/dashboard/", "icon": "home"},
    {"label": "Properties", "url": "/dashboard/properties", "icon": "building"},
    {"label": "Campaigns", "url": "/dashboard/campaigns", "icon": "megaphone"},
    {"label": "Social", "url": "/dashboard/social", "icon": "share"},
    {"label": "Analytics", "url": "/dashboard/analytics", "icon": "chart"},
    {"label": "Settings", "url": "/dashboard/settings", "icon": "settings"},
]


def base_context(request: Request, identity: Identity, brand: BrandConfiguration) -> dict:
    """Navigation, identity and theme shared by every dashboard view."""
    path = request.url.path
    nav = []
    for item in NAV_ITEMS:
        nav.append({
            **item,
            "active": path == item["url"] or (
                item["url"] != "/dashboard/" and path.startswith(item["url"])
            ),
        })

    return {
        "nav_items": nav,
        "identity": {"id": identity.id, "email": identity.email},
        "brand": brand.model_dump(),
        "css_variables": brand_css_variables(brand),
    }
