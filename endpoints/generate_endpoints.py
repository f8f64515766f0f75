from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from quiz_generator import GenerationError

router = APIRouter(prefix="/api", tags=["generate"])
logger = logging.getLogger(__name__)


@router.post("/generate-test")
async def generate_test(request: Request, body: dict[str, Any]):
    logger.info("GENERATE REQUEST: keys=%s", sorted(body.keys()))

    category = body.get("category")
    if not isinstance(category, str) or not category.strip():
        raise HTTPException(status_code=400, detail="category is required")

    generator = request.app.state.generator
    try:
        text = await asyncio.to_thread(generator.generate, category.strip())
    except GenerationError as e:
        logger.error("GENERATE: failed for category=%s: %s", category, e)
        return JSONResponse({"error": "The text generation API call failed."}, status_code=502)

    return {"test": text}
