from typing import Protocol

from PIL import Image


class VLM(Protocol):
    """
    Minimal interface every model loader satisfies: one prompt, one image,
    one text answer. Errors from the transport propagate to the caller.
    """

    async def generate(self, prompt: str, image: Image.Image) -> str:
        ...
