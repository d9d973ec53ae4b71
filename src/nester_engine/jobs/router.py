"""Job API router — initiation, status queries and workflow callbacks."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from nester_engine.common.config import get_settings
from nester_engine.common.exceptions import UnauthorizedError
from nester_engine.common.handlers import guarded
from nester_engine.common.schemas import Acknowledgement
from nester_engine.common.security import SIGNATURE_HEADER, verify_callback_signature
from nester_engine.jobs.models import JobType
from nester_engine.jobs.schemas import (
    CampaignInitiationResponse,
    CampaignStatusResponse,
    ContentStatusResponse,
    ImagesInitiationResponse,
    ImagesStatusResponse,
    InitiationResponse,
    ScrapeResponse,
)
from nester_engine.properties.platforms import PLATFORM_CAPABILITIES
from nester_engine.scope import use_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/property", tags=["jobs"])


def _get_service():
    from nester_engine.deps import get_job_service
    return get_job_service()


def _get_db():
    from nester_engine.deps import get_db
    return get_db()


async def _verify_signature(request: Request) -> None:
    secret = get_settings().workflow_webhook_secret
    if not secret:
        return
    body = await request.body()
    if not verify_callback_signature(body, request.headers.get(SIGNATURE_HEADER, ""), secret):
        logger.warning("Rejected workflow callback with invalid signature: %s", request.url.path)
        raise UnauthorizedError("Invalid signature")


# ── Scrape ──

@router.post("/scrape", response_model=ScrapeResponse)
async def initiate_scrape(request: Request):
    async with guarded("Property scraping"):
        body = await request.json()
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().initiate_scrape(session, identity, body)


@router.get("/scrape")
async def scrape_capabilities():
    return {
        "supported_platforms": PLATFORM_CAPABILITIES,
        "message": "Property scraping API - POST to scrape a property URL",
    }


@router.post(
    "/scrape/callback",
    response_model=Acknowledgement,
    response_model_exclude_defaults=True,
)
async def scrape_callback(request: Request):
    async with guarded("Scraping callback"):
        await _verify_signature(request)
        body = await request.json()
        svc = _get_service()
        db = _get_db()
        async with db.get_session() as session:
            outcome = await svc.reconcile_scrape(session, body)
        if outcome.follow_up_property_id:
            await svc.cascade_content(
                db, outcome.follow_up_property_id, outcome.follow_up_agent_id,
            )
        return outcome.ack


@router.get("/scrape/callback")
async def scrape_callback_info():
    return {
        "message": "Property scraping callback endpoint - POST only",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Content generation ──

@router.post("/generate-content", response_model=InitiationResponse)
async def initiate_content(request: Request):
    async with guarded("Content generation"):
        body = await request.json()
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().initiate_content(session, identity, body)


@router.get("/generate-content", response_model=ContentStatusResponse)
async def content_status(request: Request, property_id: str | None = None):
    async with guarded("Content generation status"):
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().content_status(session, identity, property_id)


@router.post(
    "/content/callback",
    response_model=Acknowledgement,
    response_model_exclude_defaults=True,
)
async def content_callback(request: Request):
    return await _reconcile(request, JobType.CONTENT)


@router.get("/content/callback")
async def content_callback_info():
    return {"message": "Content generation callback endpoint"}


# ── Image generation ──

@router.post("/generate-images", response_model=ImagesInitiationResponse)
async def initiate_images(request: Request):
    async with guarded("AI image generation"):
        body = await request.json()
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().initiate_images(session, identity, body)


@router.get("/generate-images", response_model=ImagesStatusResponse)
async def images_status(request: Request, property_id: str | None = None):
    async with guarded("AI image generation status"):
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().images_status(session, identity, property_id)


@router.post(
    "/images/callback",
    response_model=Acknowledgement,
    response_model_exclude_defaults=True,
)
async def images_callback(request: Request):
    return await _reconcile(request, JobType.IMAGES)


@router.get("/images/callback")
async def images_callback_info():
    return {"message": "AI image generation callback endpoint"}


# ── Social campaign ──

@router.post("/social-campaign", response_model=CampaignInitiationResponse)
async def initiate_social_campaign(request: Request):
    async with guarded("Social campaign generation"):
        body = await request.json()
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().initiate_social_campaign(session, identity, body)


@router.get("/social-campaign", response_model=CampaignStatusResponse)
async def campaign_status(request: Request, property_id: str | None = None):
    async with guarded("Social campaign status"):
        identity = use_session(request).identity
        async with _get_db().get_session() as session:
            return await _get_service().campaign_status(session, identity, property_id)


@router.post(
    "/social-campaign/callback",
    response_model=Acknowledgement,
    response_model_exclude_defaults=True,
)
async def social_campaign_callback(request: Request):
    return await _reconcile(request, JobType.SOCIAL_CAMPAIGN)


@router.get("/social-campaign/callback")
async def social_campaign_callback_info(challenge: str | None = None):
    if challenge:
        return PlainTextResponse(challenge)
    return {"message": "Social campaign callback endpoint"}


async def _reconcile(request: Request, job_type: JobType) -> Acknowledgement:
    async with guarded(f"{job_type.value} callback"):
        await _verify_signature(request)
        body = await request.json()
        async with _get_db().get_session() as session:
            return await _get_service().reconcile_generation(session, job_type, body)
