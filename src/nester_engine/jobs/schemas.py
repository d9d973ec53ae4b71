"""Request, response and callback schemas for workflow jobs."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, model_validator

from nester_engine.properties.schemas import (
    GeneratedImage,
    GeneratedPost,
    ScrapedProperty,
)


# ── Initiation requests ──

class ScrapeRequest(BaseModel):
    url: str
    agent_id: str


class ContentRequest(BaseModel):
    property_id: str
    content_types: Optional[list[str]] = None
    regenerate: bool = False


class ImagesRequest(BaseModel):
    property_id: str
    regenerate: bool = False


class CampaignSettings(BaseModel):
    auto_publish: bool = False
    start_date: Optional[datetime] = None
    timezone: str = "America/New_York"
    regenerate: bool = False


class SocialCampaignRequest(BaseModel):
    property_id: str
    regenerate: bool = False
    campaign_settings: CampaignSettings = CampaignSettings()


# ── Initiation responses ──

class ScrapedPropertySummary(BaseModel):
    id: str
    platform: str
    listing_url: str
    listing_status: str


class ScrapeResponse(BaseModel):
    success: bool = True
    property_id: str
    job_id: str
    status: str = "processing"
    property: ScrapedPropertySummary
    message: str


class InitiationResponse(BaseModel):
    success: bool = True
    job_id: str
    status: str = "processing"
    message: str
    estimated_completion: datetime


class ImagesInitiationResponse(InitiationResponse):
    styles_generating: list[str]
    total_images_expected: int


class CampaignInitiationResponse(InitiationResponse):
    campaign_details: dict[str, Any]


# ── Callback payloads (one variant per workflow type) ──

class ScrapeCallback(BaseModel):
    kind: Literal["scrape"] = "scrape"
    property_id: str
    execution_id: str
    success: bool
    data: Optional[ScrapedProperty] = None
    error: Optional[str] = None


class GenerationCallback(BaseModel):
    """Common shape of status-style callbacks; ``execution_id`` is accepted for ``job_id``."""

    property_id: str
    job_id: str
    status: str
    error_message: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_execution_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("job_id") and data.get("execution_id"):
            data = {**data, "job_id": data["execution_id"]}
        return data


class ContentCallback(GenerationCallback):
    kind: Literal["content"] = "content"
    generated_content: dict[str, Any] = {}
    social_posts: list[GeneratedPost] = []


class ImagesCallback(GenerationCallback):
    kind: Literal["images"] = "images"
    generated_images: list[GeneratedImage] = []


class SocialCampaignCallback(GenerationCallback):
    kind: Literal["social_campaign"] = "social_campaign"
    agent_id: Optional[str] = None
    generated_posts: list[GeneratedPost] = []
    generation_stats: dict[str, Any] = {}


# ── Status queries ──

class JobStatusResponse(BaseModel):
    property_id: str
    status: str
    job_id: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None


class ContentStatusResponse(JobStatusResponse):
    content_stats: dict[str, Any] = {}


class ImagesStatusResponse(JobStatusResponse):
    original_images: int = 0
    generated_images: int = 0
    images_by_style: dict[str, int] = {}
    completion_percentage: int = 0


class RecentPost(BaseModel):
    id: str
    platform: str
    content: str
    archetype: Optional[str] = None
    status: str
    scheduled_for: Optional[datetime] = None


class CampaignStatusResponse(JobStatusResponse):
    campaign_analytics: dict[str, Any] = {}
    recent_posts: list[RecentPost] = []
