# services/site_content.py

from typing import List

from models.site_config import SiteConfig


SERVICES = [
    {
        "icon": "home",
        "title": "Residential Valuation",
        "description": "IBBI registered valuations for homes, flats and plots, accepted by partner banks.",
    },
    {
        "icon": "building",
        "title": "Commercial Valuation",
        "description": "Market and rental valuations for shops, offices, hotels and industrial sheds.",
    },
    {
        "icon": "clipboard",
        "title": "Building Surveys",
        "description": "Structural health checks and defect reports before you buy, lend or renovate.",
    },
    {
        "icon": "map",
        "title": "Land Surveys",
        "description": "Digital boundary and area mapping with conversions to local land units.",
    },
    {
        "icon": "scale",
        "title": "Expert Witness",
        "description": "Independent valuation evidence for property and partition disputes.",
    },
    {
        "icon": "trending-up",
        "title": "Investment Advice",
        "description": "Rate trends and location insight drawn from our own field surveys.",
    },
]

TESTIMONIALS = [
    {
        "text": "The valuation report was thorough and the bank accepted it without a single query.",
        "author": "Rajesh Sharma",
        "role": "Home Buyer, Kashipur",
        "initials": "RS",
    },
    {
        "text": "Quick site visit, clear explanation of the rate and a report within two days.",
        "author": "Neha Bisht",
        "role": "Business Owner, Ramnagar",
        "initials": "NB",
    },
    {
        "text": "Their structural survey flagged issues we would never have noticed ourselves.",
        "author": "Amit Chauhan",
        "role": "Investor, Rudrapur",
        "initials": "AC",
    },
]

FAQ = [
    {
        "question": "What documents are needed for a property valuation?",
        "answer": "A copy of the sale deed or title document, the approved map if available, and recent tax receipts.",
    },
    {
        "question": "How long does a valuation take?",
        "answer": "Most residential reports are delivered within two working days of the site visit.",
    },
    {
        "question": "Are your reports accepted by banks?",
        "answer": "Yes. We are empanelled with the partner banks listed on this site.",
    },
    {
        "question": "Do you survey outside Kashipur?",
        "answer": "We cover the Kumaon region and nearby districts of Uttar Pradesh.",
    },
]


def build_site_content(config: SiteConfig) -> dict:
    """Everything the public pages render, shaped by the site config."""
    testimonials: List[dict] = TESTIMONIALS if config.features.show_testimonials else []
    return {
        "hero": config.hero.model_dump(),
        "seo": config.seo.model_dump(),
        "contact": config.contact.model_dump(),
        "stats": config.stats.model_dump(),
        "banks": config.banks,
        "services": SERVICES,
        "testimonials": testimonials,
        "faq": FAQ,
        "features": config.features.model_dump(),
    }
