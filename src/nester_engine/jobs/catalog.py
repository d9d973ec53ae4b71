"""Workflow names and the fixed job parameters sent with each dispatch."""

from nester_engine.jobs.models import JobType
from nester_engine.properties.platforms import IMAGE_STYLES

SCRAPE_WORKFLOW = "property-scraper"
CONTENT_WORKFLOW = "content-generator"
IMAGES_WORKFLOW = "ai-image-generator"
SOCIAL_CAMPAIGN_WORKFLOW = "social-campaign-generator"

CALLBACK_PATHS = {
    JobType.SCRAPE: "/api/property/scrape/callback",
    JobType.CONTENT: "/api/property/content/callback",
    JobType.IMAGES: "/api/property/images/callback",
    JobType.SOCIAL_CAMPAIGN: "/api/property/social-campaign/callback",
}

DEFAULT_CONTENT_TYPES = [
    "social_posts",
    "property_description",
    "email_campaigns",
    "virtual_tour_script",
]

ASPECT_RATIOS = ["1:1", "9:16", "16:9"]

CAMPAIGN_DURATION_DAYS = 70
CAMPAIGN_POSTS_PER_DAY = 3
CAMPAIGN_TOTAL_POSTS = CAMPAIGN_DURATION_DAYS * CAMPAIGN_POSTS_PER_DAY

WEEKLY_THEMES = [
    {"week": 1, "theme": "The Grand Unveiling", "focus": "property_introduction"},
    {"week": 2, "theme": "Home Features Spotlight", "focus": "feature_highlights"},
    {"week": 3, "theme": "Neighborhood Discovery", "focus": "location_benefits"},
    {"week": 4, "theme": "Lifestyle & Community", "focus": "lifestyle_appeal"},
    {"week": 5, "theme": "Investment Opportunity", "focus": "financial_benefits"},
    {"week": 6, "theme": "Behind the Scenes", "focus": "process_transparency"},
    {"week": 7, "theme": "Buyer Stories & Testimonials", "focus": "social_proof"},
    {"week": 8, "theme": "Final Features Showcase", "focus": "unique_selling_points"},
    {"week": 9, "theme": "Last Call Marketing", "focus": "urgency_creation"},
    {"week": 10, "theme": "Closing Push", "focus": "final_opportunity"},
]

CONTENT_ARCHETYPES = [
    "feature_spotlight",
    "before_after_styling",
    "local_gem",
    "data_insight",
    "poll_question",
    "lifestyle_story",
    "meet_the_expert",
    "virtual_tour_teaser",
    "neighborhood_highlight",
    "investment_analysis",
]

SOCIAL_PLATFORMS = [
    "instagram",
    "facebook",
    "linkedin",
    "tiktok",
    "twitter",
    "bluesky",
    "threads",
]


def campaign_structure() -> dict:
    return {
        "duration_days": CAMPAIGN_DURATION_DAYS,
        "posts_per_day": CAMPAIGN_POSTS_PER_DAY,
        "total_posts": CAMPAIGN_TOTAL_POSTS,
        "weekly_themes": WEEKLY_THEMES,
        "content_archetypes": CONTENT_ARCHETYPES,
        "platforms": SOCIAL_PLATFORMS,
    }


def campaign_details() -> dict:
    return {
        "duration_days": CAMPAIGN_DURATION_DAYS,
        "total_posts": CAMPAIGN_TOTAL_POSTS,
        "posts_per_day": CAMPAIGN_POSTS_PER_DAY,
        "platforms": len(SOCIAL_PLATFORMS),
        "weekly_themes": len(WEEKLY_THEMES),
        "content_archetypes": len(CONTENT_ARCHETYPES),
    }
