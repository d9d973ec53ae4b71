"""SQLAlchemy model for per-agent branding."""

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from nester_engine.common.models import Base, TimestampMixin


class AgentBrandModel(Base, TimestampMixin):
    __tablename__ = "agent_brands"

    agent_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    has_custom_branding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    brand_tier: Mapped[str] = mapped_column(String(50), nullable=False, default="nester_default")
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_storage_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    secondary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    font_family: Mapped[str | None] = mapped_column(String(100), nullable=True)
    persona_tone: Mapped[str | None] = mapped_column(String(255), nullable=True)
    persona_style: Mapped[str | None] = mapped_column(String(255), nullable=True)
    persona_key_phrases: Mapped[list | None] = mapped_column(JSON, nullable=True)
    persona_phrases_to_avoid: Mapped[list | None] = mapped_column(JSON, nullable=True)
