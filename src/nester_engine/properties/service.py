"""Property persistence used by the job handlers and the dashboard."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nester_engine.properties.models import (
    PropertyImageModel,
    PropertyModel,
    SocialPostModel,
)
from nester_engine.properties.platforms import IMAGE_STYLES
from nester_engine.properties.schemas import GeneratedImage, GeneratedPost, ScrapedProperty


class PropertyService:
    """Property, image and social post operations. Ownership is checked here."""

    async def create_pending(
        self, session: AsyncSession, agent_id: str, listing_url: str, platform: str,
    ) -> PropertyModel:
        prop = PropertyModel(
            agent_id=agent_id,
            address="Processing...",
            listing_url=listing_url,
            listing_platform=platform,
            listing_status="processing",
            features=[],
            flooring_types=[],
        )
        session.add(prop)
        await session.flush()
        return prop

    async def get(self, session: AsyncSession, property_id: str) -> PropertyModel | None:
        return await session.get(PropertyModel, property_id)

    async def get_owned(
        self, session: AsyncSession, property_id: str, agent_id: str,
    ) -> PropertyModel | None:
        """Return the property only if ``agent_id`` owns it."""
        result = await session.execute(
            select(PropertyModel).where(
                PropertyModel.id == property_id,
                PropertyModel.agent_id == agent_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_agent(
        self, session: AsyncSession, agent_id: str,
    ) -> list[PropertyModel]:
        result = await session.execute(
            select(PropertyModel)
            .where(PropertyModel.agent_id == agent_id)
            .order_by(PropertyModel.created_at.desc())
        )
        return list(result.scalars().all())

    # ── Scrape reconciliation ──

    async def apply_scraped(
        self, session: AsyncSession, prop: PropertyModel, data: ScrapedProperty,
    ) -> None:
        details = data.property_details
        agent = data.listing_agent
        prop.address = data.address
        prop.price = data.price
        prop.bedrooms = data.bedrooms
        prop.bathrooms = data.bathrooms
        prop.square_feet = data.square_feet
        prop.property_type = data.property_type or "house"
        prop.description = data.description
        prop.features = list(data.features)
        prop.neighborhood_info = data.neighborhood_info
        prop.listing_status = "active"
        if details is not None:
            prop.year_built = details.year_built
            prop.lot_size = details.lot_size
            prop.garage_spaces = details.garage_spaces
            prop.heating_type = details.heating
            prop.cooling_type = details.cooling
            prop.flooring_types = list(details.flooring)
        if agent is not None:
            prop.listing_agent_name = agent.name
            prop.listing_agent_phone = agent.phone
            prop.listing_agent_email = agent.email

        for i, image in enumerate(data.images):
            session.add(PropertyImageModel(
                property_id=prop.id,
                storage_path=image.url,
                original_url=image.url,
                alt_text=image.alt,
                display_order=i,
                is_primary=image.is_primary or i == 0,
            ))
        await session.flush()

    async def mark_scrape_failed(self, session: AsyncSession, prop: PropertyModel) -> None:
        prop.listing_status = "error"
        await session.flush()

    # ── Images ──

    async def list_images(
        self, session: AsyncSession, property_id: str,
    ) -> list[PropertyImageModel]:
        result = await session.execute(
            select(PropertyImageModel)
            .where(PropertyImageModel.property_id == property_id)
            .order_by(PropertyImageModel.display_order)
        )
        return list(result.scalars().all())

    async def add_generated_images(
        self, session: AsyncSession, property_id: str, images: list[GeneratedImage],
    ) -> int:
        existing = await session.scalar(
            select(func.count()).select_from(PropertyImageModel)
            .where(PropertyImageModel.property_id == property_id)
        )
        for i, image in enumerate(images):
            session.add(PropertyImageModel(
                property_id=property_id,
                storage_path=image.url,
                original_url=image.url,
                alt_text=image.alt_text,
                room_type=image.room_type,
                style=image.style,
                aspect_ratio=image.aspect_ratio,
                source_image_id=image.source_image_id,
                display_order=(existing or 0) + i,
                is_primary=False,
            ))
        await session.flush()
        return len(images)

    async def image_stats(self, session: AsyncSession, property_id: str) -> dict:
        images = await self.list_images(session, property_id)
        by_style = {style: 0 for style in IMAGE_STYLES}
        original = 0
        for image in images:
            if image.style in by_style:
                by_style[image.style] += 1
            elif image.style is None:
                original += 1
        generated = sum(by_style.values())
        return {
            "original_images": original,
            "generated_images": generated,
            "images_by_style": by_style,
            "completion_percentage": (
                round(generated / (original * len(IMAGE_STYLES)) * 100) if original else 0
            ),
        }

    # ── Social posts ──

    async def has_posts(self, session: AsyncSession, property_id: str) -> bool:
        result = await session.execute(
            select(SocialPostModel.id)
            .where(SocialPostModel.property_id == property_id)
            .limit(1)
        )
        return result.first() is not None

    async def list_posts(
        self, session: AsyncSession, property_id: str,
    ) -> list[SocialPostModel]:
        result = await session.execute(
            select(SocialPostModel)
            .where(SocialPostModel.property_id == property_id)
            .order_by(SocialPostModel.day_number, SocialPostModel.created_at)
        )
        return list(result.scalars().all())

    async def clear_posts(self, session: AsyncSession, property_id: str) -> None:
        await session.execute(
            delete(SocialPostModel).where(SocialPostModel.property_id == property_id)
        )

    async def add_posts(
        self,
        session: AsyncSession,
        property_id: str,
        agent_id: str,
        posts: list[GeneratedPost],
        job_id: str,
    ) -> int:
        """Store generated posts; auto-published ones are scheduled, the rest drafts."""
        for post in posts:
            session.add(SocialPostModel(
                property_id=property_id,
                agent_id=agent_id,
                platform=post.platform,
                copy_text=post.content,
                hashtags=list(post.hashtags),
                archetype=post.archetype,
                week_theme=post.week_theme,
                day_number=post.day_number,
                scheduled_for=post.scheduled_for,
                status="scheduled" if post.auto_publish else "draft",
                image_urls=list(post.image_urls),
                metadata_={"job_id": job_id, "archetype": post.archetype, "week_theme": post.week_theme},
            ))
        await session.flush()
        return len(posts)

    async def post_stats(self, session: AsyncSession, property_id: str) -> dict:
        posts = await self.list_posts(session, property_id)
        by_platform: dict[str, int] = {}
        by_status: dict[str, int] = {}
        for post in posts:
            by_platform[post.platform] = by_platform.get(post.platform, 0) + 1
            by_status[post.status] = by_status.get(post.status, 0) + 1
        return {
            "social_posts": len(posts),
            "platforms": sorted(by_platform),
            "posts_by_platform": by_platform,
            "posts_by_status": by_status,
            "published_posts": by_status.get("published", 0),
            "scheduled_posts": by_status.get("scheduled", 0),
        }
