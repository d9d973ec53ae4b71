"""Dashboard sub-application — JSON view-models for the property dashboard."""

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from nester_engine.common.exceptions import NesterError, NotFoundError
from nester_engine.common.handlers import guarded, nester_error_handler
from nester_engine.dashboard.context import base_context
from nester_engine.jobs.models import JobStatus, JobType
from nester_engine.properties.schemas import (
    PropertyImageResponse,
    PropertyResponse,
    SocialPostResponse,
)
from nester_engine.scope import use_brand, use_session


# ── Auth middleware ──


class DashboardAuthMiddleware(BaseHTTPMiddleware):
    """Redirect callers without an identity to the login surface."""

    async def dispatch(self, request, call_next):
        store = use_session(request)
        if store.identity is None:
            return RedirectResponse(store.login_path, status_code=302)
        return await call_next(request)


# ── Helpers ──


def _get_db():
    from nester_engine.deps import get_db
    return get_db()


def _get_property_service():
    from nester_engine.deps import get_property_service
    return get_property_service()


def _get_job_store():
    from nester_engine.deps import get_job_store
    return get_job_store()


def _job_summary(records) -> dict[str, str]:
    """Latest status per job type; records arrive newest first."""
    summary = {job_type.value: JobStatus.NOT_STARTED.value for job_type in JobType}
    seen: set[str] = set()
    for record in records:
        if record.job_type not in seen:
            summary[record.job_type] = record.status
            seen.add(record.job_type)
    return summary


def create_dashboard_app() -> FastAPI:
    dashboard = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    dashboard.add_middleware(DashboardAuthMiddleware)
    dashboard.add_exception_handler(NesterError, nester_error_handler)

    @dashboard.get("/")
    async def overview(request: Request):
        async with guarded("Dashboard overview"):
            identity = use_session(request).identity
            brand = await use_brand(request).current()
            props = _get_property_service()
            jobs = _get_job_store()
            async with _get_db().get_session() as session:
                properties = []
                for prop in await props.list_for_agent(session, identity.id):
                    records = await jobs.list_for_property(session, prop.id)
                    properties.append({
                        **PropertyResponse.model_validate(prop).model_dump(mode="json"),
                        "jobs": _job_summary(records),
                    })
            return {
                **base_context(request, identity, brand),
                "properties": properties,
                "stats": {
                    "total": len(properties),
                    "active": sum(1 for p in properties if p["listing_status"] == "active"),
                    "processing": sum(1 for p in properties if p["listing_status"] == "processing"),
                },
            }

    @dashboard.get("/properties/{property_id}")
    async def property_detail(property_id: str, request: Request):
        async with guarded("Dashboard property detail"):
            identity = use_session(request).identity
            brand = await use_brand(request).current()
            props = _get_property_service()
            async with _get_db().get_session() as session:
                prop = await props.get_owned(session, property_id, identity.id)
                if prop is None:
                    raise NotFoundError("Property not found or access denied")
                images = await props.list_images(session, prop.id)
                posts = await props.list_posts(session, prop.id)
                records = await _get_job_store().list_for_property(session, prop.id)
            return {
                **base_context(request, identity, brand),
                "property": PropertyResponse.model_validate(prop).model_dump(mode="json"),
                "images": [
                    PropertyImageResponse.model_validate(i).model_dump(mode="json") for i in images
                ],
                "posts": [
                    SocialPostResponse.model_validate(p).model_dump(mode="json") for p in posts
                ],
                "jobs": _job_summary(records),
                "job_history": [
                    {
                        "job_type": r.job_type,
                        "job_id": r.job_id,
                        "status": r.status,
                        "started_at": r.started_at.isoformat(),
                        "completed_at": r.completed_at.isoformat() if r.completed_at else None,
                        "error": r.error,
                    }
                    for r in records
                ],
            }

    return dashboard
