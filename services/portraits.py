"""
Portrait generation – builds a style prompt and runs the OpenAI image edit
for each purchased style, one after another.
"""
import asyncio
import logging
from typing import Any, Mapping, Optional

from clients.openai_image_client import OpenAIImageClient
from models.schemas import PortraitResult
from services.catalog import get_style

logger = logging.getLogger(__name__)

ACCURACY_CLAUSE = (
    "Keep the pet's likeness accurate: preserve its breed, markings, fur color, eye color "
    "and facial features so the owner instantly recognizes it"
)


def persona_name(first_name: str = "", last_name: str = "", metadata: Optional[Mapping[str, Any]] = None) -> str:
    """Customer name for the plaque; submitted names win over the ones stored at checkout."""
    metadata = metadata or {}
    first = (first_name or "").strip() or (metadata.get("firstName") or "")
    last = (last_name or "").strip() or (metadata.get("lastName") or "")
    return f"{first} {last}".strip()


def build_portrait_prompt(style_key: str, persona: str = "") -> str:
    style = get_style(style_key)
    if style is None:
        raise ValueError(f"Unknown portrait style: {style_key}")
    plaque = f' and incorporate a name plate that reads "{persona}".' if persona else "."
    return f"{style.prompt} {ACCURACY_CLAUSE}{plaque}"


class PortraitService:
    def __init__(self, provider: OpenAIImageClient):
        self.provider = provider

    def generate_sync(
        self,
        image: bytes,
        styles: list[str],
        persona: str = "",
        filename: str = "pet.png",
        content_type: str = "image/png",
    ) -> list[PortraitResult]:
        """Blocking provider calls in style order. The first failure aborts the rest."""
        results = []
        for i, key in enumerate(styles, start=1):
            prompt = build_portrait_prompt(key, persona)
            logger.info("Generating portrait %d/%d (style=%s)", i, len(styles), key)
            b64 = self.provider.edit_image(image, prompt, filename=filename, content_type=content_type)
            results.append(
                PortraitResult(
                    style=key,
                    label=get_style(key).label,
                    image_base64=b64,
                    content_type=self.provider.output_mime_type,
                )
            )
        return results

    async def generate(
        self,
        image: bytes,
        styles: list[str],
        persona: str = "",
        filename: str = "pet.png",
        content_type: str = "image/png",
    ) -> list[PortraitResult]:
        """Run generation without blocking the event loop."""
        return await asyncio.to_thread(
            self.generate_sync,
            image,
            styles,
            persona,
            filename,
            content_type,
        )
