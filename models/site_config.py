# models/site_config.py

from typing import List
from pydantic import BaseModel, Field


class HeroConfig(BaseModel):
    badge: str
    title_line1: str
    title_line2: str
    description: str
    background_image: str


class SeoConfig(BaseModel):
    title: str
    description: str
    keywords: str


class ThemeConfig(BaseModel):
    primary_color: str = Field(pattern=r"^#[0-9a-fA-F]{6}$")
    dark_mode: bool = False


class SocialLinks(BaseModel):
    facebook: str = "#"
    twitter: str = "#"
    linkedin: str = "#"
    instagram: str = "#"


class ContactInfo(BaseModel):
    phone: str
    email: str
    address: str
    google_maps_link: str
    socials: SocialLinks = SocialLinks()


class SiteFeatures(BaseModel):
    enable_ai: bool = True
    show_testimonials: bool = True


class SiteStats(BaseModel):
    years: int = 0
    properties: int = 0
    clients: int = 0


class SiteConfig(BaseModel):
    """
    Every section is required; stored overrides are merged over the
    defaults before validation.
    """
    hero: HeroConfig
    seo: SeoConfig
    theme: ThemeConfig
    contact: ContactInfo
    features: SiteFeatures
    stats: SiteStats
    banks: List[str]
