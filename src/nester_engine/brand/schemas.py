"""Pydantic schemas for brand configuration."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

BrandMode = Literal["nester_default", "white_label"]


class BrandPersona(BaseModel):
    tone: str
    style: str
    key_phrases: list[str] = []
    avoid_phrases: list[str] = []


class BrandConfiguration(BaseModel):
    mode: BrandMode
    company_name: str
    logo: str
    primary_color: str
    secondary_color: str
    font_family: str
    persona: BrandPersona


DEFAULT_BRAND = BrandConfiguration(
    mode="nester_default",
    company_name="Nester",
    logo="/assets/nester-logo.svg",
    primary_color="#2563eb",
    secondary_color="#64748b",
    font_family="Inter",
    persona=BrandPersona(
        tone="Professional & Authoritative",
        style="Concise & Factual",
        key_phrases=["Discover your dream home", "Premium real estate marketing"],
        avoid_phrases=["cheap", "deal", "bargain"],
    ),
)


def default_brand() -> BrandConfiguration:
    return DEFAULT_BRAND.model_copy(deep=True)


_HEX_COLOR = r"^#[0-9a-fA-F]{3}([0-9a-fA-F]{3})?$"


class BrandUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    has_custom_branding: Optional[bool] = None
    company_name: Optional[str] = Field(None, max_length=255)
    logo_storage_path: Optional[str] = Field(None, max_length=1024)
    primary_color: Optional[str] = Field(None, pattern=_HEX_COLOR)
    secondary_color: Optional[str] = Field(None, pattern=_HEX_COLOR)
    font_family: Optional[str] = Field(None, max_length=100)
    persona_tone: Optional[str] = Field(None, max_length=255)
    persona_style: Optional[str] = Field(None, max_length=255)
    persona_key_phrases: Optional[list[str]] = None
    persona_phrases_to_avoid: Optional[list[str]] = None


class BrandResponse(BaseModel):
    brand: Optional[BrandConfiguration] = None
    loading: bool = False
    css_variables: dict[str, str] = {}
