import logging
from typing import Optional

import google.generativeai as genai
from PIL import Image

from receipt_qa.acquisition import encode_jpeg

logger = logging.getLogger(__name__)


class GeminiVLM:
    """Gemini vision model via Google Generative AI SDK."""

    def __init__(
        self,
        model_id: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **_,
    ):
        genai.configure(api_key=api_key)
        generation_config = {
            k: v for k, v in (("max_output_tokens", max_output_tokens),
                              ("temperature", temperature)) if v is not None
        }
        self.model_id = model_id
        self.model = genai.GenerativeModel(model_id, generation_config=generation_config or None)
        logger.info("[gemini] model %s ready", model_id)

    async def generate(self, prompt: str, image: Image.Image, **_) -> str:
        r = await self.model.generate_content_async(
            [{"mime_type": "image/jpeg", "data": encode_jpeg(image)}, prompt]
        )
        # `.text` raises ValueError when the response carries no text part
        try:
            text = r.text
        except ValueError:
            logger.info("[gemini] response had no text part")
            return ""
        return text or ""
