"""SEO Routes — sitemap.xml and robots.txt at the site root."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.config import Settings, get_settings
from stylesage.core.seo import render_robots
from stylesage.infrastructure.database import get_db
from stylesage.services.seo import SeoService

router = APIRouter(tags=["seo"])


@router.get("/sitemap.xml")
async def sitemap(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    body = await SeoService(db, settings.app_url).sitemap()
    return Response(content=body, media_type="application/xml")


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots(settings: Settings = Depends(get_settings)):
    return render_robots(settings.app_url.rstrip("/"))
