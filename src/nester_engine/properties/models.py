"""SQLAlchemy models for properties, their images and social posts."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nester_engine.common.models import Base, TimestampMixin, generate_uuid


class PropertyModel(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    agent_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[float | None] = mapped_column(Float, nullable=True)
    square_feet: Mapped[int | None] = mapped_column(Integer, nullable=True)
    property_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    neighborhood_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    year_built: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lot_size: Mapped[float | None] = mapped_column(Float, nullable=True)
    garage_spaces: Mapped[int | None] = mapped_column(Integer, nullable=True)
    heating_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cooling_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    flooring_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    listing_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    listing_platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    listing_status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    listing_agent_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    listing_agent_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    listing_agent_email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class PropertyImageModel(Base):
    __tablename__ = "property_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id"), nullable=False, index=True
    )
    storage_path: Mapped[str] = mapped_column(String(2048), nullable=False)
    original_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    alt_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    room_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    style: Mapped[str | None] = mapped_column(String(50), nullable=True)
    aspect_ratio: Mapped[str | None] = mapped_column(String(10), nullable=True)
    source_image_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class SocialPostModel(Base, TimestampMixin):
    __tablename__ = "social_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id"), nullable=False, index=True
    )
    agent_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    copy_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hashtags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    archetype: Mapped[str | None] = mapped_column(String(100), nullable=True)
    week_theme: Mapped[str | None] = mapped_column(String(255), nullable=True)
    day_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    image_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
