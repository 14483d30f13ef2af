"""
Gemini client for BingeBox.

Two uses:
- identify a movie/TV show from a screenshot (structured JSON answer)
- answer free-text questions about one title given its metadata

Provider rate limits surface as ``RateLimitExceeded`` so routes can answer 429.
"""
import base64
import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

from google import genai
from google.genai import types

from bingebox.core.config import settings
from bingebox.schemas import MediaContext

logger = logging.getLogger(__name__)

_client: Optional[genai.Client] = None

DETECT_PROMPT = """
Analyze this image and identify if it is from a movie or a TV show.
If it is a movie, provide the movie title.
If it is a TV show, provide the TV show title, and if possible, the season and episode number.

Return the result in a JSON format with the following structure:
{
  "type": "movie" | "tv" | "unknown",
  "title": "Title of the movie or TV show",
  "season": number | null,
  "episode": number | null,
  "confidence": "high" | "medium" | "low",
  "description": "A brief description of why you think it is this media."
}
Do not include markdown formatting like ```json. Just return the raw JSON string.
"""

DETECT_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["movie", "tv", "unknown"]},
        "title": {"type": "string"},
        "season": {"type": "number"},
        "episode": {"type": "number"},
        "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
        "description": {"type": "string"},
    },
    "required": ["type", "title", "confidence", "description"],
}


class GeminiNotConfigured(RuntimeError):
    pass


class RateLimitExceeded(Exception):
    """The AI provider refused the request because of quota/rate limits."""


class AIServiceError(Exception):
    pass


def get_client() -> genai.Client:
    global _client
    if not settings.gemini_api_key:
        raise GeminiNotConfigured("GEMINI_API_KEY is not configured")
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


def split_data_uri(image: str) -> Tuple[str, str]:
    """Return (base64_data, mime_type) for a raw base64 string or a data URI."""
    mime_type = "image/png"
    data = image
    if "base64," in image:
        meta, data = image.split("base64,", 1)
        match = re.search(r":(.*?);", meta)
        if match:
            mime_type = match.group(1)
    return data, mime_type


def strip_markdown_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def is_rate_limit_error(error: Exception) -> bool:
    code = getattr(error, "code", None) or getattr(error, "status", None)
    message = str(error).lower()
    return code == 429 or "429" in message or "rate limit" in message


async def detect_media_from_image(image_base64: str, mime_type: str = "image/png") -> Dict[str, Any]:
    client = get_client()
    try:
        response = await client.aio.models.generate_content(
            model=settings.gemini_vision_model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_text(text=DETECT_PROMPT),
                        types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type=mime_type),
                    ],
                )
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=DETECT_SCHEMA,
            ),
        )
        text = response.text
        if not text:
            raise AIServiceError("No text response from Gemini")
        return json.loads(strip_markdown_fences(text))
    except Exception as e:
        logger.error(f"Error detecting media with Gemini: {e}")
        raise AIServiceError("Failed to analyze image") from e


def build_chat_prompt(context: MediaContext) -> str:
    media_name = "movie" if context.type == "movie" else "TV show"
    parts = [f"Title: {context.title}"]
    if context.overview:
        parts.append(f"Overview: {context.overview}")
    if context.genres:
        parts.append(f"Genres: {', '.join(context.genres)}")
    if context.cast:
        parts.append(f"Cast: {', '.join(context.cast[:10])}")
    if context.releaseDate:
        parts.append(f"Release Date: {context.releaseDate}")
    if context.runtime:
        parts.append(f"Runtime: {context.runtime}")
    if context.voteAverage:
        parts.append(f"Rating: {context.voteAverage}/10")
    details = "\n".join(parts)

    return f"""You are a helpful and knowledgeable assistant specializing in movies and TV shows.
You are currently helping a user learn more about the following {media_name}:

{details}

Your responses should be:
- Detailed and informative
- Focused on this specific {media_name}
- Helpful for someone interested in watching or learning about this content
- Based on publicly available information about this {media_name}

If asked about topics unrelated to this {media_name} or entertainment in general, politely redirect the conversation back to discussing this {media_name}.

If you don't know something specific about this {media_name}, be honest about it rather than making up information."""


async def chat_about_media(context: MediaContext, message: str) -> str:
    client = get_client()
    try:
        response = await client.aio.models.generate_content(
            model=settings.gemini_chat_model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_text(text=build_chat_prompt(context)),
                        types.Part.from_text(text=f"User question: {message}"),
                    ],
                )
            ],
        )
        text = response.text
        if not text:
            raise AIServiceError("No text response from Gemini")
        return text.strip()
    except AIServiceError:
        raise
    except Exception as e:
        logger.error(f"Error chatting with Gemini: {e}")
        if is_rate_limit_error(e):
            raise RateLimitExceeded("RATE_LIMIT_EXCEEDED") from e
        raise AIServiceError("Failed to get AI response") from e
