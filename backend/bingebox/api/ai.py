"""
ai.py

Gemini-backed routes: identify media from a screenshot and chat about a title.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from bingebox.core.security import require_user
from bingebox.models import User
from bingebox.schemas import MediaContext
from bingebox.services import gemini_client
from bingebox.services.gemini_client import RateLimitExceeded

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/detect-media")
async def detect_media(request: Request):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request body")
    image = body.get("image") if isinstance(body, dict) else None
    if not image or not isinstance(image, str):
        raise HTTPException(status_code=400, detail="Image data is required")

    image_base64, mime_type = gemini_client.split_data_uri(image)
    try:
        result = await gemini_client.detect_media_from_image(image_base64, mime_type)
        return {"result": result}
    except Exception as e:
        logger.error(f"Error in detect-media route: {e}")
        raise HTTPException(status_code=500, detail="Failed to process image detection")


@router.post("/ai-chat")
async def ai_chat(request: Request, user: User = Depends(require_user)):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request body")
    if not isinstance(body, dict) or not body.get("mediaContext") or not body.get("message"):
        raise HTTPException(status_code=400, detail="mediaContext and message are required")

    raw_context = body["mediaContext"]
    if not isinstance(raw_context, dict) or raw_context.get("type") not in ("movie", "tv") or not raw_context.get("title"):
        raise HTTPException(status_code=400, detail="mediaContext must include valid type (movie/tv) and title")
    try:
        context = MediaContext.model_validate(raw_context)
    except ValidationError:
        raise HTTPException(status_code=400, detail="mediaContext must include valid type (movie/tv) and title")

    try:
        response = await gemini_client.chat_about_media(context, str(body["message"]))
        return {"response": response}
    except RateLimitExceeded:
        logger.warning(f"Gemini rate limit hit for user {user.id}")
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again later.")
    except Exception as e:
        logger.error(f"Error in ai-chat route: {e}")
        raise HTTPException(status_code=500, detail="Failed to get AI response")
