"""FastAPI dependencies for blogs."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from inkwell.blogs.service import BlogService


async def get_blog_service(request: Request) -> BlogService:
    """Get blog service from app state."""
    service = getattr(request.app.state, "blog_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Blog service unavailable",
        )
    return service


BlogServiceDep = Annotated[BlogService, Depends(get_blog_service)]
