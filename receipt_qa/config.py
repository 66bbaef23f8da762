"""
Run configuration, parsed by draccus from `--config_path cfg.yaml` and/or
dotted CLI overrides (e.g. `--model.model_id gemini-2.5-pro`).
"""

from dataclasses import dataclass, field
from typing import Optional

from receipt_qa.util.keyloader import DEFAULT_CREDENTIALS_FILE, DEFAULT_FIELD


@dataclass
class ModelConfig:
    family: str = "google"
    model_id: str = "gemini-2.5-flash"
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None


@dataclass
class CameraConfig:
    device_index: int = 0
    # platform status the session starts from: authorized | not-determined | denied | restricted
    permission: str = "not-determined"


@dataclass
class AppConfig:
    question: str = ""
    image_path: str = ""
    use_camera: bool = False

    credentials_file: str = str(DEFAULT_CREDENTIALS_FILE)
    credentials_field: str = DEFAULT_FIELD
    credentials_from_env: bool = True

    discard_stale: bool = True
    log_level: str = "INFO"

    model: ModelConfig = field(default_factory=ModelConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
