"""SEO Documents — sitemap entries, robots rules and product JSON-LD.

Invariants:
    - Product priority: 0.6 base, 0.8 featured, +0.1 (capped at 0.9) for trending/bestseller tags
    - Category pages 0.7, popular tag pages 0.5
    - robots.txt always ends with Sitemap and Host lines
    - Rendering is pure: callers pass base_url, timestamps and rows

Design Decisions:
    - Sitemap rendered with xml.sax.saxutils.escape: URLs can contain '&'
    - Rows passed as plain dicts so the shell decides how to query them
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from xml.sax.saxutils import escape

from stylesage.core.domain_types import ChangeFrequency

SITE_NAME = "StyleSage"
CURRENCY = "INR"


@dataclass(frozen=True)
class SitemapEntry:
    url: str
    last_modified: datetime
    change_frequency: ChangeFrequency
    priority: float


_STATIC_PAGES: tuple[tuple[str, ChangeFrequency, float], ...] = (
    ("", ChangeFrequency.DAILY, 1.0),
    ("/collections", ChangeFrequency.DAILY, 0.9),
    ("/anime", ChangeFrequency.DAILY, 0.9),
    ("/meme", ChangeFrequency.DAILY, 0.9),
    ("/custom", ChangeFrequency.WEEKLY, 0.8),
    ("/about", ChangeFrequency.MONTHLY, 0.7),
    ("/search", ChangeFrequency.WEEKLY, 0.6),
    ("/size-guide", ChangeFrequency.MONTHLY, 0.5),
    ("/shipping-info", ChangeFrequency.MONTHLY, 0.5),
    ("/returns", ChangeFrequency.MONTHLY, 0.5),
    ("/faq", ChangeFrequency.MONTHLY, 0.6),
    ("/contact", ChangeFrequency.MONTHLY, 0.5),
    ("/auth", ChangeFrequency.YEARLY, 0.2),
    ("/cart", ChangeFrequency.NEVER, 0.1),
    ("/checkout", ChangeFrequency.NEVER, 0.1),
)

POPULAR_TAGS: tuple[str, ...] = (
    "anime", "naruto", "dragon-ball-z", "attack-on-titan", "demon-slayer",
    "meme", "viral", "trending", "classic-meme", "bestseller",
    "custom", "personalized", "unique",
)

_PRIVATE_PATHS = [
    "/admin", "/admin/*", "/api/*", "/auth/callback/*", "/cart",
    "/checkout", "/orders", "/payment", "/success",
]

_BLOCKED_CRAWLERS = (
    "GPTBot", "ChatGPT-User", "CCBot", "anthropic-ai", "Claude-Web", "FacebookBot",
)


def static_entries(base_url: str, now: datetime) -> list[SitemapEntry]:
    return [
        SitemapEntry(f"{base_url}{path}", now, freq, priority)
        for path, freq, priority in _STATIC_PAGES
    ]


def product_priority(is_featured: bool, tags: list[str]) -> float:
    priority = 0.8 if is_featured else 0.6
    if "trending" in tags or "bestseller" in tags:
        priority = min(priority + 0.1, 0.9)
    return round(priority, 1)


def dynamic_entries(
    base_url: str,
    now: datetime,
    products: list[dict],
    categories: list[dict],
) -> list[SitemapEntry]:
    entries = [
        SitemapEntry(
            f"{base_url}/products/{p['slug']}",
            p["updated_at"],
            ChangeFrequency.WEEKLY,
            product_priority(p.get("is_featured", False), p.get("tags") or []),
        )
        for p in products
    ]
    entries.extend(
        SitemapEntry(
            f"{base_url}/category/{c['slug']}", c["updated_at"],
            ChangeFrequency.WEEKLY, 0.7,
        )
        for c in categories
    )
    entries.extend(
        SitemapEntry(f"{base_url}/tags/{tag}", now, ChangeFrequency.WEEKLY, 0.5)
        for tag in POPULAR_TAGS
    )
    return entries


def render_sitemap(entries: list[SitemapEntry]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for entry in entries:
        lines.append(
            "<url>"
            f"<loc>{escape(entry.url)}</loc>"
            f"<lastmod>{entry.last_modified.isoformat()}</lastmod>"
            f"<changefreq>{entry.change_frequency.value}</changefreq>"
            f"<priority>{entry.priority:.1f}</priority>"
            "</url>"
        )
    lines.append("</urlset>")
    return "\n".join(lines)


def render_robots(base_url: str) -> str:
    groups: list[list[str]] = []
    for agent in ("*", "Googlebot", "Bingbot"):
        group = [f"User-agent: {agent}", "Allow: /"]
        group += [f"Disallow: {path}" for path in _PRIVATE_PATHS]
        group.append("Crawl-delay: 1")
        groups.append(group)
    for agent in _BLOCKED_CRAWLERS:
        groups.append([f"User-agent: {agent}", "Disallow: /"])
    for agent in ("facebookexternalhit", "Twitterbot"):
        groups.append([
            f"User-agent: {agent}", "Allow: /",
            "Disallow: /admin", "Disallow: /api", "Disallow: /auth/callback",
        ])
    body = "\n\n".join("\n".join(group) for group in groups)
    host = base_url.split("://", 1)[-1]
    return f"{body}\n\nSitemap: {base_url}/sitemap.xml\nHost: {host}\n"


def product_structured_data(product: dict, base_url: str, today: date) -> dict:
    """schema.org Product document for a product page."""
    offers = {
        "@type": "Offer",
        "url": f"{base_url}/products/{product['slug']}",
        "priceCurrency": CURRENCY,
        "price": product["price"],
        "priceValidUntil": (today + timedelta(days=365)).isoformat(),
        "availability": (
            "https://schema.org/InStock"
            if product.get("in_stock", True)
            else "https://schema.org/OutOfStock"
        ),
        "seller": {"@type": "Organization", "name": SITE_NAME},
    }
    if product.get("original_price"):
        offers["priceSpecification"] = {
            "@type": "UnitPriceSpecification",
            "price": product["original_price"],
            "priceCurrency": CURRENCY,
        }
    return {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": product["name"],
        "description": product["description"],
        "image": product.get("images", []),
        "category": product.get("category", ""),
        "brand": {"@type": "Brand", "name": SITE_NAME},
        "manufacturer": {"@type": "Organization", "name": SITE_NAME},
        "offers": offers,
        "aggregateRating": {
            "@type": "AggregateRating",
            "ratingValue": product.get("rating", 0),
            "reviewCount": product.get("reviews", 0),
            "bestRating": 5,
            "worstRating": 1,
        },
        "additionalProperty": [
            {"@type": "PropertyValue", "name": "Size", "value": size}
            for size in product.get("sizes", [])
        ],
    }
