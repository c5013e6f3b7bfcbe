"""
OpenAI image edit API client for pet portraits.
Uses POST /v1/images/edits with the uploaded photo and a style prompt.
"""
import logging
import time
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com"


class PortraitGenerationError(Exception):
    pass

class PortraitRateLimit(PortraitGenerationError):
    pass


def _error_message(r: httpx.Response) -> str:
    """Pull OpenAI's error.message out of a failed response, else the raw body."""
    try:
        body = r.json()
    except ValueError:
        return r.text[:500]
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return r.text[:500]


class OpenAIImageClient:
    """Client for OpenAI POST /v1/images/edits (image edit with a text prompt)."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: int = 120,
        model: str = "gpt-image-1",
        size: str = "1024x1024",
        output_format: str = "png",
        max_retries: int = 3,
        retry_base_wait: float = 2.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.model = model
        self.size = size
        self.output_format = output_format
        self.max_retries = max(1, max_retries)
        self.retry_base_wait = retry_base_wait
        self.transport = transport

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _form_fields(self, prompt: str) -> dict:
        fields = {
            "model": self.model,
            "prompt": prompt,
            "size": self.size,
            "n": "1",
        }
        # DALL-E models return URLs unless asked; gpt-image models always return base64
        if self.model.startswith("dall-e"):
            fields["response_format"] = "b64_json"
        else:
            fields["output_format"] = self.output_format
        return fields

    @property
    def output_mime_type(self) -> str:
        """MIME type of the returned image; DALL-E edits are always PNG."""
        if self.model.startswith("dall-e"):
            return "image/png"
        return f"image/{self.output_format}"

    def edit_image(
        self,
        image: bytes,
        prompt: str,
        filename: str = "pet.png",
        content_type: str = "image/png",
    ) -> str:
        """
        Send the photo and prompt to the image edit endpoint. Returns the base64 image payload.
        Retries 429/5xx responses and network errors up to max_retries attempts.
        """
        url = f"{self.base_url}/v1/images/edits"
        data = self._form_fields(prompt)
        files = {"image": (filename, image, content_type)}

        for attempt in range(self.max_retries):
            try:
                with httpx.Client(timeout=self.timeout_seconds, transport=self.transport) as client:
                    r = client.post(url, data=data, files=files, headers=self._headers())

                if r.status_code in (429, 500, 502, 503, 504):
                    wait = self.retry_base_wait * (2**attempt)
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            "OpenAI image edit transient error (%s), waiting %.0fs before retry %d/%d",
                            r.status_code,
                            wait,
                            attempt + 1,
                            self.max_retries,
                        )
                        time.sleep(wait)
                        continue
                    if r.status_code == 429:
                        raise PortraitRateLimit(_error_message(r))
                    raise PortraitGenerationError(_error_message(r))
                if r.status_code >= 400:
                    raise PortraitGenerationError(_error_message(r))

                try:
                    resp = r.json()
                except ValueError:
                    logger.error("OpenAI image edit returned a non-JSON body: %s", r.text[:200])
                    raise PortraitGenerationError("OpenAI returned an unexpected response.")
                data_items = resp.get("data") if isinstance(resp, dict) else None
                first = data_items[0] if isinstance(data_items, list) and data_items else None
                b64_json = first.get("b64_json") if isinstance(first, dict) else None
                if not b64_json:
                    raise PortraitGenerationError("OpenAI did not return image data.")
                logger.info("OpenAI image edit completed (model=%s)", self.model)
                return b64_json

            except httpx.RequestError as e:
                wait = self.retry_base_wait * (2**attempt)
                if attempt < self.max_retries - 1:
                    logger.warning(
                        "OpenAI image edit network error, waiting %.0fs before retry %d/%d: %s",
                        wait,
                        attempt + 1,
                        self.max_retries,
                        e,
                    )
                    time.sleep(wait)
                    continue
                raise PortraitGenerationError(f"OpenAI request failed after retries: {e}")
