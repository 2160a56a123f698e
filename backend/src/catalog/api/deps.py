"""API dependencies for database access and service construction."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.database import get_db
from catalog.services.curation_service import Clock, CurationService, utc_now
from catalog.services.product_service import ProductService
from catalog.services.visibility_service import VisibilityService


def get_clock() -> Clock:
    """Clock used for current/previous month sections (overridable in tests)."""
    return utc_now


async def get_product_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProductService:
    return ProductService(db)


async def get_visibility_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VisibilityService:
    return VisibilityService(db)


async def get_curation_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CurationService:
    return CurationService(db, clock=clock)


# Type aliases for cleaner dependency injection
ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
VisibilityServiceDep = Annotated[VisibilityService, Depends(get_visibility_service)]
CurationServiceDep = Annotated[CurationService, Depends(get_curation_service)]
