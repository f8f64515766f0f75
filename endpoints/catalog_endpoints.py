from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from persistence import AsyncCollection

router = APIRouter(prefix="/api", tags=["catalog"])
logger = logging.getLogger(__name__)

SortName = Literal["latest", "popular", "oldest"]


def get_quizzes(request: Request) -> AsyncCollection:
    return request.app.state.quizzes


def get_images(request: Request) -> AsyncCollection:
    return request.app.state.images


# -------------------------------------------------------------------
# QUIZZES
# -------------------------------------------------------------------
@router.post("/quizzes", status_code=201)
async def create_quiz(body: dict[str, Any], quizzes: AsyncCollection = Depends(get_quizzes)):
    record = await quizzes.insert(body)
    logger.info("QUIZ CREATE: id=%s category=%s", record["id"], record.get("category"))
    return record


@router.get("/quizzes")
async def list_quizzes(
    category: Optional[str] = None,
    sort: SortName = "latest",
    limit: Optional[int] = Query(default=None, ge=0, le=500),
    offset: int = Query(default=0, ge=0),
    quizzes: AsyncCollection = Depends(get_quizzes),
):
    flt = {"category": category} if category else None
    items, total = await quizzes.page(filter=flt, sort=sort, limit=limit, offset=offset)
    return {"items": items, "count": len(items), "total": total}


@router.get("/quizzes/{quiz_id}")
async def get_quiz(quiz_id: str, quizzes: AsyncCollection = Depends(get_quizzes)):
    return await quizzes.get(quiz_id)


@router.patch("/quizzes/{quiz_id}")
async def update_quiz(quiz_id: str, body: dict[str, Any], quizzes: AsyncCollection = Depends(get_quizzes)):
    return await quizzes.update(quiz_id, body)


@router.delete("/quizzes/{quiz_id}")
async def delete_quiz(quiz_id: str, quizzes: AsyncCollection = Depends(get_quizzes)):
    return {"deleted": await quizzes.delete(quiz_id)}


@router.post("/quizzes/{quiz_id}/views")
async def record_quiz_view(quiz_id: str, quizzes: AsyncCollection = Depends(get_quizzes)):
    views = await quizzes.increment_counter(quiz_id, "views")
    return {"id": quiz_id, "views": views}


# -------------------------------------------------------------------
# IMAGES (metadata only)
# -------------------------------------------------------------------
@router.post("/images", status_code=201)
async def create_image(body: dict[str, Any], images: AsyncCollection = Depends(get_images)):
    record = await images.insert(body)
    logger.info("IMAGE CREATE: id=%s url=%s", record["id"], record.get("url"))
    return record


@router.get("/images")
async def list_images(
    limit: Optional[int] = Query(default=None, ge=0, le=500),
    images: AsyncCollection = Depends(get_images),
):
    items, total = await images.page(sort="latest", limit=limit)
    return {"items": items, "count": len(items), "total": total}


@router.get("/images/{image_id}")
async def get_image(image_id: str, images: AsyncCollection = Depends(get_images)):
    return await images.get(image_id)


@router.delete("/images/{image_id}")
async def delete_image(image_id: str, images: AsyncCollection = Depends(get_images)):
    return {"deleted": await images.delete(image_id)}
