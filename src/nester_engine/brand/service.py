"""Brand resolution and upsert against the agent_brands table."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nester_engine.brand.models import AgentBrandModel
from nester_engine.brand.schemas import (
    DEFAULT_BRAND,
    BrandConfiguration,
    BrandPersona,
    BrandUpdate,
    default_brand,
)
from nester_engine.common.database import insert_or_get

logger = logging.getLogger(__name__)


def brand_from_record(record: AgentBrandModel | None) -> BrandConfiguration:
    """Map a stored record to a configuration; defaults unless custom branding is on."""
    if record is None or not record.has_custom_branding:
        return default_brand()

    d = DEFAULT_BRAND
    return BrandConfiguration(
        mode="white_label",
        company_name=record.company_name or d.company_name,
        logo=record.logo_storage_path or d.logo,
        primary_color=record.primary_color or d.primary_color,
        secondary_color=record.secondary_color or d.secondary_color,
        font_family=record.font_family or d.font_family,
        persona=BrandPersona(
            tone=record.persona_tone or d.persona.tone,
            style=record.persona_style or d.persona.style,
            key_phrases=list(record.persona_key_phrases or d.persona.key_phrases),
            avoid_phrases=list(record.persona_phrases_to_avoid or d.persona.avoid_phrases),
        ),
    )


def brand_css_variables(brand: BrandConfiguration) -> dict[str, str]:
    """Theme variables the dashboard injects on the document root."""
    return {
        "--brand-primary": brand.primary_color,
        "--brand-secondary": brand.secondary_color,
        "--brand-font": brand.font_family,
        "--brand-logo": f"url('{brand.logo}')",
        "--company-name": f"'{brand.company_name}'",
    }


def brand_context(brand: BrandConfiguration, agent_email: str = "") -> dict:
    """Persona and identity fields sent to the workflow engine with each job."""
    return {
        "company_name": brand.company_name,
        "brand_tier": brand.mode,
        "persona_tone": brand.persona.tone,
        "persona_style": brand.persona.style,
        "key_phrases": brand.persona.key_phrases,
        "avoid_phrases": brand.persona.avoid_phrases,
        "primary_color": brand.primary_color,
        "secondary_color": brand.secondary_color,
        "agent_name": agent_email.split("@")[0] if agent_email else "Agent",
    }


class BrandService:
    """Per-tenant brand configuration operations."""

    async def get_record(
        self, session: AsyncSession, agent_id: str
    ) -> AgentBrandModel | None:
        result = await session.execute(
            select(AgentBrandModel).where(AgentBrandModel.agent_id == agent_id)
        )
        return result.scalar_one_or_none()

    async def resolve(
        self, session: AsyncSession, agent_id: str | None
    ) -> BrandConfiguration:
        """Resolve the brand for a tenant. Never raises for data-store errors."""
        if not agent_id:
            return default_brand()

        try:
            record = await self.get_record(session, agent_id)
        except SQLAlchemyError:
            logger.exception("Error loading brand", extra={"agent_id": agent_id})
            return default_brand()

        if record is None:
            record = await self._create_default(session, agent_id)
        return brand_from_record(record)

    async def _create_default(
        self, session: AsyncSession, agent_id: str
    ) -> AgentBrandModel | None:
        """Lazily insert the default row; a concurrent insert wins and is returned."""
        try:
            return await insert_or_get(
                session,
                AgentBrandModel(
                    agent_id=agent_id,
                    has_custom_branding=False,
                    brand_tier="nester_default",
                ),
                lambda: self.get_record(session, agent_id),
            )
        except SQLAlchemyError:
            logger.exception("Error creating default brand", extra={"agent_id": agent_id})
            return None

    async def upsert(
        self, session: AsyncSession, agent_id: str, update: BrandUpdate
    ) -> AgentBrandModel:
        """Merge the provided fields into the tenant's record, creating it if absent.

        Providing any branding field switches the tenant to custom branding
        unless ``has_custom_branding`` is given explicitly.
        """
        fields = update.model_dump(exclude_unset=True)
        record = await self.get_record(session, agent_id)
        if record is None:
            record = AgentBrandModel(agent_id=agent_id, has_custom_branding=False)
            session.add(record)

        flag = fields.pop("has_custom_branding", None)
        for field, value in fields.items():
            setattr(record, field, value)

        if flag is not None:
            record.has_custom_branding = flag
        elif fields:
            record.has_custom_branding = True
        record.brand_tier = "white_label" if record.has_custom_branding else "nester_default"

        await session.flush()
        return record
