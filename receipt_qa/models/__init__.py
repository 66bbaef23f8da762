from typing import Optional
from receipt_qa.util.interfaces import VLM

FAMILY2INITIALIZER = {}

try:
    from .google_loader import GeminiVLM
    FAMILY2INITIALIZER["google"] = GeminiVLM
except ImportError:
    pass


def load_vlm(
    model_family: str,
    model_id: str,
    api_key: str,
    max_output_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
) -> VLM:
    if model_family not in FAMILY2INITIALIZER:
        raise ValueError(f"Model family `{model_family}` not supported!")
    return FAMILY2INITIALIZER[model_family](
        model_id=model_id,
        api_key=api_key,
        max_output_tokens=max_output_tokens,
        temperature=temperature,
    )
