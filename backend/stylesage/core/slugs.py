"""Slugs & Image IDs — URL slugs for products and public-id extraction for hosted images.

Invariants:
    - slug: lowercase, only [a-z0-9-], no leading/trailing/double dashes from whitespace
    - public id: path after "upload/<version>/" without file extension;
      falls back to the bare filename stem
"""

import re

_NON_SLUG = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")
_EXTENSION = re.compile(r"\.[^/.]+$")


def create_slug(name: str) -> str:
    slug = _NON_SLUG.sub("", name.lower().strip())
    slug = _WHITESPACE.sub("-", slug)
    return _DASHES.sub("-", slug)


def public_id_from_url(url: str) -> str:
    """Extract the image host public id from a delivery URL."""
    parts = url.split("/")
    if "upload" in parts:
        upload_index = parts.index("upload")
        if upload_index + 2 < len(parts):
            path = "/".join(parts[upload_index + 2:])
            return _EXTENSION.sub("", path)
    return parts[-1].split(".")[0]


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated form field, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
