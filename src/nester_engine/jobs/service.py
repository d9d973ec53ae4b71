"""Job service — initiate workflow jobs and reconcile their callbacks.

Every job follows the same two phases. ``initiate_*`` validates the request,
dispatches the workflow and records a ``processing`` work record under the
engine-issued job id. ``reconcile_*`` matches a callback to that record by job
id, claims the terminal state through ``JobStore.finish`` and only then
applies the side effects, so a duplicate delivery writes nothing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nester_engine.brand.service import BrandService, brand_context
from nester_engine.common.config import NesterSettings
from nester_engine.common.database import DatabaseManager
from nester_engine.common.exceptions import (
    InvalidTransitionError,
    NesterError,
    NotFoundError,
    RequestValidationFailed,
    UnauthorizedError,
    UpstreamError,
    WorkflowEngineError,
)
from nester_engine.common.schemas import Acknowledgement
from nester_engine.identity.provider import Identity
from nester_engine.jobs import catalog
from nester_engine.jobs.models import TERMINAL_STATUSES, JobStatus, JobType, WorkRecordModel
from nester_engine.jobs.schemas import (
    CampaignInitiationResponse,
    CampaignStatusResponse,
    ContentCallback,
    ContentRequest,
    ContentStatusResponse,
    GenerationCallback,
    ImagesCallback,
    ImagesInitiationResponse,
    ImagesRequest,
    ImagesStatusResponse,
    InitiationResponse,
    RecentPost,
    ScrapeCallback,
    ScrapedPropertySummary,
    ScrapeRequest,
    ScrapeResponse,
    SocialCampaignCallback,
    SocialCampaignRequest,
)
from nester_engine.jobs.store import JobStore
from nester_engine.jobs.workflow_client import WorkflowClient
from nester_engine.properties.models import PropertyModel
from nester_engine.properties.platforms import (
    UNSUPPORTED_PLATFORM_MESSAGE,
    detect_platform,
    is_valid_url,
)
from nester_engine.properties.service import PropertyService

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_CALLBACK_MODELS: dict[JobType, Type[GenerationCallback]] = {
    JobType.CONTENT: ContentCallback,
    JobType.IMAGES: ImagesCallback,
    JobType.SOCIAL_CAMPAIGN: SocialCampaignCallback,
}

_JOB_LABELS = {
    JobType.CONTENT: "Content generation",
    JobType.IMAGES: "AI image generation",
    JobType.SOCIAL_CAMPAIGN: "Social media campaign generation",
}


@dataclass
class Reconciliation:
    """Callback outcome plus an optional follow-up job to start after commit."""

    ack: Acknowledgement
    follow_up_property_id: Optional[str] = None
    follow_up_agent_id: Optional[str] = None


def _eta(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


def _parse(model: Type[M], body: dict, message: str = "Invalid request") -> M:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.info("Rejected payload for %s: %s", model.__name__, e.errors()[:3])
        raise RequestValidationFailed(message) from e


def _require_property_id(body: Any) -> str:
    if not isinstance(body, dict) or not body.get("property_id"):
        raise RequestValidationFailed("Property ID is required")
    return body["property_id"]


def _require_identity(identity: Identity | None) -> Identity:
    if identity is None:
        raise UnauthorizedError()
    return identity


def _property_data(prop: PropertyModel) -> dict[str, Any]:
    return {
        "address": prop.address,
        "price": prop.price,
        "bedrooms": prop.bedrooms,
        "bathrooms": prop.bathrooms,
        "square_feet": prop.square_feet,
        "property_type": prop.property_type,
        "description": prop.description,
        "features": prop.features,
        "neighborhood_info": prop.neighborhood_info,
        "year_built": prop.year_built,
        "lot_size": prop.lot_size,
    }


class JobService:
    """Initiation, reconciliation and status queries for all workflow jobs."""

    def __init__(
        self,
        settings: NesterSettings,
        workflow: WorkflowClient,
        store: JobStore | None = None,
        properties: PropertyService | None = None,
        brands: BrandService | None = None,
    ):
        self.settings = settings
        self.workflow = workflow
        self.store = store or JobStore()
        self.properties = properties or PropertyService()
        self.brands = brands or BrandService()

    async def _dispatch(self, workflow: str, payload: dict[str, Any], failure: str) -> str:
        try:
            return await self.workflow.trigger(workflow, payload)
        except WorkflowEngineError as e:
            logger.error("%s: %s", failure, e.message)
            raise UpstreamError(failure) from e

    async def _owned_property(
        self, session: AsyncSession, identity: Identity, property_id: str,
    ) -> PropertyModel:
        prop = await self.properties.get_owned(session, property_id, identity.id)
        if prop is None:
            raise NotFoundError("Property not found or access denied")
        return prop

    # ── Scrape ──

    async def initiate_scrape(
        self, session: AsyncSession, identity: Identity | None, body: Any,
    ) -> ScrapeResponse:
        if not isinstance(body, dict) or not body.get("url") or not body.get("agent_id"):
            raise RequestValidationFailed("URL and agent_id are required")
        url = body["url"]
        if not isinstance(url, str) or not is_valid_url(url):
            raise RequestValidationFailed("Invalid URL format")
        platform = detect_platform(url)
        if platform is None:
            raise RequestValidationFailed(UNSUPPORTED_PLATFORM_MESSAGE)
        req = _parse(ScrapeRequest, body)
        if identity is None or identity.id != req.agent_id:
            raise UnauthorizedError()

        job_id = await self._dispatch(
            catalog.SCRAPE_WORKFLOW,
            {
                "url": req.url,
                "platform": platform,
                "agent_id": req.agent_id,
                "callback_url": self.settings.callback_url(catalog.CALLBACK_PATHS[JobType.SCRAPE]),
            },
            "Failed to initiate property scraping",
        )
        prop = await self.properties.create_pending(session, req.agent_id, req.url, platform)
        await self.store.create(session, req.agent_id, prop.id, JobType.SCRAPE, job_id)
        logger.info(
            "Property scraping initiated",
            extra={"property_id": prop.id, "job_id": job_id, "platform": platform},
        )
        return ScrapeResponse(
            property_id=prop.id,
            job_id=job_id,
            property=ScrapedPropertySummary(
                id=prop.id,
                platform=platform,
                listing_url=req.url,
                listing_status=prop.listing_status,
            ),
            message="Property scraping initiated. You will be notified when complete.",
        )

    async def reconcile_scrape(self, session: AsyncSession, body: Any) -> Reconciliation:
        if not isinstance(body, dict) or not body.get("property_id") or not body.get("execution_id"):
            raise RequestValidationFailed("Missing required fields: property_id, execution_id")
        cb = _parse(ScrapeCallback, body, "Invalid callback payload")

        record = await self.store.get_by_job_id(session, JobType.SCRAPE, cb.execution_id)
        prop = await self.properties.get(session, record.property_id) if record else None
        if record is None or prop is None:
            logger.error("Property not found for execution_id %s", cb.execution_id)
            raise NotFoundError("Property not found")

        if cb.success and cb.data is not None:
            claimed = await self._claim(
                session, record, JobStatus.COMPLETED,
                result={"address": cb.data.address, "images": len(cb.data.images)},
            )
            if not claimed:
                return Reconciliation(ack=Acknowledgement(success=True, duplicate=True))
            await self.properties.apply_scraped(session, prop, cb.data)
            logger.info("Property %s updated with scraped data", prop.id)
            return Reconciliation(
                ack=Acknowledgement(success=True),
                follow_up_property_id=prop.id,
                follow_up_agent_id=record.agent_id,
            )

        error = cb.error or "Unknown scraping error"
        if not await self._claim(session, record, JobStatus.ERROR, error=error):
            return Reconciliation(ack=Acknowledgement(success=True, duplicate=True))
        await self.properties.mark_scrape_failed(session, prop)
        logger.warning("Property scraping failed for %s: %s", prop.id, error)
        return Reconciliation(ack=Acknowledgement(success=True))

    async def cascade_content(
        self, db: DatabaseManager, property_id: str, agent_id: str,
    ) -> str | None:
        """Start content generation after a successful scrape. Failures are logged only."""
        try:
            async with db.get_session() as session:
                prop = await self.properties.get(session, property_id)
                if prop is None:
                    return None
                brand = await self.brands.resolve(session, agent_id)
                return await self._start_content(
                    session, prop, agent_id, brand_context(brand), None, False,
                )
        except (NesterError, SQLAlchemyError):
            logger.exception("Failed to trigger content generation for %s", property_id)
            return None

    # ── Content ──

    async def _start_content(
        self,
        session: AsyncSession,
        prop: PropertyModel,
        agent_id: str,
        brand_ctx: dict,
        content_types: list[str] | None,
        regenerate: bool,
    ) -> str:
        job_id = await self._dispatch(
            catalog.CONTENT_WORKFLOW,
            {
                "property_id": prop.id,
                "property_data": _property_data(prop),
                "brand_context": brand_ctx,
                "content_types": content_types or catalog.DEFAULT_CONTENT_TYPES,
                "regenerate": regenerate,
                "callback_url": self.settings.callback_url(catalog.CALLBACK_PATHS[JobType.CONTENT]),
            },
            "Failed to initiate content generation",
        )
        await self.store.create(session, agent_id, prop.id, JobType.CONTENT, job_id)
        return job_id

    async def initiate_content(
        self, session: AsyncSession, identity: Identity | None, body: Any,
    ) -> InitiationResponse:
        _require_property_id(body)
        identity = _require_identity(identity)
        req = _parse(ContentRequest, body)
        prop = await self._owned_property(session, identity, req.property_id)
        brand = await self.brands.resolve(session, identity.id)

        job_id = await self._start_content(
            session, prop, identity.id, brand_context(brand, identity.email),
            req.content_types, req.regenerate,
        )
        return InitiationResponse(
            job_id=job_id,
            message="Content generation initiated. This may take a few minutes.",
            estimated_completion=_eta(5),
        )

    async def content_status(
        self, session: AsyncSession, identity: Identity | None, property_id: str | None,
    ) -> ContentStatusResponse:
        prop, record = await self._status_lookup(session, identity, property_id, JobType.CONTENT)
        stats = await self.properties.post_stats(session, prop.id)
        return ContentStatusResponse(
            **self._status_fields(prop.id, record),
            content_stats={
                "social_posts": stats["social_posts"],
                "platforms": stats["platforms"],
                "published_posts": stats["published_posts"],
                "scheduled_posts": stats["scheduled_posts"],
            },
        )

    # ── Images ──

    async def initiate_images(
        self, session: AsyncSession, identity: Identity | None, body: Any,
    ) -> ImagesInitiationResponse:
        _require_property_id(body)
        identity = _require_identity(identity)
        req = _parse(ImagesRequest, body)
        prop = await self._owned_property(session, identity, req.property_id)
        originals = [
            img for img in await self.properties.list_images(session, prop.id)
            if img.style is None
        ]
        if not originals:
            raise RequestValidationFailed("No images found for this property")
        brand = await self.brands.resolve(session, identity.id)

        job_id = await self._dispatch(
            catalog.IMAGES_WORKFLOW,
            {
                "property_id": prop.id,
                "agent_id": identity.id,
                "property_data": {
                    "address": prop.address,
                    "property_type": prop.property_type,
                    "description": prop.description,
                    "features": prop.features,
                },
                "brand_context": {
                    "company_name": brand.company_name,
                    "brand_tier": brand.mode,
                },
                "images": [
                    {
                        "id": img.id,
                        "storage_path": img.storage_path,
                        "alt_text": img.alt_text,
                        "is_primary": img.is_primary,
                    }
                    for img in originals
                ],
                "styles": catalog.IMAGE_STYLES,
                "aspect_ratios": catalog.ASPECT_RATIOS,
                "regenerate": req.regenerate,
                "callback_url": self.settings.callback_url(catalog.CALLBACK_PATHS[JobType.IMAGES]),
            },
            "Failed to initiate AI image generation",
        )
        await self.store.create(session, identity.id, prop.id, JobType.IMAGES, job_id)
        return ImagesInitiationResponse(
            job_id=job_id,
            message="AI image generation initiated. This will take 5-10 minutes.",
            estimated_completion=_eta(10),
            styles_generating=catalog.IMAGE_STYLES,
            total_images_expected=len(originals) * len(catalog.IMAGE_STYLES) * len(catalog.ASPECT_RATIOS),
        )

    async def images_status(
        self, session: AsyncSession, identity: Identity | None, property_id: str | None,
    ) -> ImagesStatusResponse:
        prop, record = await self._status_lookup(session, identity, property_id, JobType.IMAGES)
        stats = await self.properties.image_stats(session, prop.id)
        return ImagesStatusResponse(**self._status_fields(prop.id, record), **stats)

    # ── Social campaign ──

    async def initiate_social_campaign(
        self, session: AsyncSession, identity: Identity | None, body: Any,
    ) -> CampaignInitiationResponse:
        _require_property_id(body)
        identity = _require_identity(identity)
        req = _parse(SocialCampaignRequest, body)
        prop = await self._owned_property(session, identity, req.property_id)

        settings = req.campaign_settings
        regenerate = req.regenerate or settings.regenerate
        if not regenerate and await self.properties.has_posts(session, prop.id):
            raise RequestValidationFailed(
                "Social media campaign already exists for this property. "
                "Use regenerate=true to recreate."
            )
        brand = await self.brands.resolve(session, identity.id)
        images = await self.properties.list_images(session, prop.id)

        job_id = await self._dispatch(
            catalog.SOCIAL_CAMPAIGN_WORKFLOW,
            {
                "property_id": prop.id,
                "agent_id": identity.id,
                "property_data": _property_data(prop),
                "brand_context": brand_context(brand, identity.email),
                "campaign_structure": catalog.campaign_structure(),
                "visual_assets": {
                    "available_images": len(images),
                    "style_variations": catalog.IMAGE_STYLES,
                    "aspect_ratios": catalog.ASPECT_RATIOS,
                },
                "campaign_settings": {
                    "auto_publish": settings.auto_publish,
                    "start_date": (settings.start_date or datetime.now(timezone.utc)).isoformat(),
                    "timezone": settings.timezone,
                    "regenerate": regenerate,
                },
                "callback_url": self.settings.callback_url(
                    catalog.CALLBACK_PATHS[JobType.SOCIAL_CAMPAIGN]
                ),
            },
            "Failed to initiate social media campaign generation",
        )
        await self.store.create(session, identity.id, prop.id, JobType.SOCIAL_CAMPAIGN, job_id)
        return CampaignInitiationResponse(
            job_id=job_id,
            message=(
                f"{catalog.CAMPAIGN_DURATION_DAYS}-day social media campaign generation "
                "initiated. This will take 10-15 minutes."
            ),
            estimated_completion=_eta(15),
            campaign_details=catalog.campaign_details(),
        )

    async def campaign_status(
        self, session: AsyncSession, identity: Identity | None, property_id: str | None,
    ) -> CampaignStatusResponse:
        prop, record = await self._status_lookup(
            session, identity, property_id, JobType.SOCIAL_CAMPAIGN,
        )
        stats = await self.properties.post_stats(session, prop.id)
        posts = await self.properties.list_posts(session, prop.id)
        return CampaignStatusResponse(
            **self._status_fields(prop.id, record),
            campaign_analytics={
                "total_posts": stats["social_posts"],
                "posts_by_platform": stats["posts_by_platform"],
                "posts_by_status": stats["posts_by_status"],
                "completion_percentage": round(
                    stats["social_posts"] / catalog.CAMPAIGN_TOTAL_POSTS * 100
                ),
            },
            recent_posts=[
                RecentPost(
                    id=post.id,
                    platform=post.platform,
                    content=post.copy_text[:100],
                    archetype=post.archetype,
                    status=post.status,
                    scheduled_for=post.scheduled_for,
                )
                for post in posts[:10]
            ],
        )

    # ── Generation callbacks ──

    async def reconcile_generation(
        self, session: AsyncSession, job_type: JobType, body: Any,
    ) -> Acknowledgement:
        """Reconcile a status-style callback (content, images, social campaign)."""
        if (
            not isinstance(body, dict)
            or not body.get("property_id")
            or not (body.get("job_id") or body.get("execution_id"))
        ):
            raise RequestValidationFailed("Missing required fields: property_id, job_id")
        cb = _parse(_CALLBACK_MODELS[job_type], body, "Invalid callback payload")

        record = await self.store.get_by_job_id(session, job_type, cb.job_id)
        if record is None:
            logger.error("No %s work record for job %s", job_type.value, cb.job_id)
            raise NotFoundError("Job not found")

        label = _JOB_LABELS[job_type]
        if cb.status == JobStatus.COMPLETED.value:
            if not await self._claim(session, record, JobStatus.COMPLETED, result=_result_summary(cb)):
                return Acknowledgement(success=True, duplicate=True)
            await self._persist_results(session, record, cb)
            logger.info("%s completed for property %s", label, record.property_id)
        elif cb.status == JobStatus.ERROR.value:
            error = cb.error_message or f"{label} failed"
            if not await self._claim(session, record, JobStatus.ERROR, error=error):
                return Acknowledgement(success=True, duplicate=True)
            logger.warning("%s failed for property %s: %s", label, record.property_id, error)
        else:
            logger.warning(
                "Unknown %s status %r for property %s", job_type.value, cb.status, record.property_id,
            )
            return Acknowledgement(success=False, error="Unknown generation status")
        return Acknowledgement(success=True)

    async def _persist_results(
        self, session: AsyncSession, record: WorkRecordModel, cb: GenerationCallback,
    ) -> None:
        if isinstance(cb, ContentCallback):
            if cb.social_posts:
                await self.properties.add_posts(
                    session, record.property_id, record.agent_id, cb.social_posts, record.job_id,
                )
        elif isinstance(cb, ImagesCallback):
            await self.properties.add_generated_images(
                session, record.property_id, cb.generated_images,
            )
        elif isinstance(cb, SocialCampaignCallback):
            await self.properties.clear_posts(session, record.property_id)
            await self.properties.add_posts(
                session, record.property_id, record.agent_id, cb.generated_posts, record.job_id,
            )

    # ── Shared helpers ──

    async def _claim(
        self,
        session: AsyncSession,
        record: WorkRecordModel,
        status: JobStatus,
        error: str | None = None,
        result: dict | None = None,
    ) -> bool:
        """Move the record to a terminal state; False when it already was terminal."""
        if record.status in {s.value for s in TERMINAL_STATUSES}:
            logger.warning(
                "Duplicate callback for %s job %s (already %s)",
                record.job_type, record.job_id, record.status,
            )
            return False
        try:
            await self.store.finish(session, record, status, error=error, result=result)
        except InvalidTransitionError:
            logger.warning(
                "Duplicate callback for %s job %s (lost race)", record.job_type, record.job_id,
            )
            return False
        return True

    async def _status_lookup(
        self,
        session: AsyncSession,
        identity: Identity | None,
        property_id: str | None,
        job_type: JobType,
    ) -> tuple[PropertyModel, WorkRecordModel | None]:
        if not property_id:
            raise RequestValidationFailed("Property ID is required")
        identity = _require_identity(identity)
        prop = await self._owned_property(session, identity, property_id)
        record = await self.store.latest_for_property(session, prop.id, job_type)
        return prop, record

    @staticmethod
    def _status_fields(property_id: str, record: WorkRecordModel | None) -> dict[str, Any]:
        if record is None:
            return {"property_id": property_id, "status": JobStatus.NOT_STARTED.value}
        return {
            "property_id": property_id,
            "status": record.status,
            "job_id": record.job_id,
            "started_at": record.started_at,
            "completed_at": record.completed_at,
            "error": record.error,
        }


def _result_summary(cb: GenerationCallback) -> dict[str, Any]:
    if isinstance(cb, ContentCallback):
        return {"content": cb.generated_content, "social_posts": len(cb.social_posts)}
    if isinstance(cb, ImagesCallback):
        return {"generated_images": len(cb.generated_images)}
    if isinstance(cb, SocialCampaignCallback):
        return {"total_posts": len(cb.generated_posts), "generation_stats": cb.generation_stats}
    return {}
