"""Pydantic schemas for property data exchanged with the workflow engine."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ScrapedImage(BaseModel):
    url: str
    alt: Optional[str] = None
    is_primary: bool = False


class ListingAgent(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class PropertyDetails(BaseModel):
    year_built: Optional[int] = None
    lot_size: Optional[float] = None
    garage_spaces: Optional[int] = None
    heating: Optional[str] = None
    cooling: Optional[str] = None
    flooring: list[str] = []


class ScrapedProperty(BaseModel):
    address: str
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    property_type: Optional[str] = None
    description: Optional[str] = None
    features: list[str] = []
    neighborhood_info: Optional[str] = None
    images: list[ScrapedImage] = []
    listing_agent: Optional[ListingAgent] = None
    property_details: Optional[PropertyDetails] = None


class GeneratedImage(BaseModel):
    url: str
    style: str
    aspect_ratio: Optional[str] = None
    room_type: Optional[str] = None
    source_image_id: Optional[str] = None
    alt_text: Optional[str] = None


class GeneratedPost(BaseModel):
    platform: str
    content: str
    hashtags: list[str] = []
    archetype: Optional[str] = None
    week_theme: Optional[str] = None
    day_number: Optional[int] = None
    scheduled_for: Optional[datetime] = None
    auto_publish: bool = False
    image_urls: list[str] = []


class PropertyImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    storage_path: str
    original_url: Optional[str] = None
    alt_text: Optional[str] = None
    room_type: Optional[str] = None
    style: Optional[str] = None
    aspect_ratio: Optional[str] = None
    display_order: int = 0
    is_primary: bool = False


class SocialPostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    platform: str
    copy_text: str
    hashtags: list[str] = []
    archetype: Optional[str] = None
    week_theme: Optional[str] = None
    day_number: Optional[int] = None
    scheduled_for: Optional[datetime] = None
    status: str


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    agent_id: str
    address: str
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    property_type: Optional[str] = None
    description: Optional[str] = None
    features: list[str] = []
    listing_url: Optional[str] = None
    listing_platform: Optional[str] = None
    listing_status: str
    created_at: datetime
