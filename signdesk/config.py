from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from signdesk.utils.resource_loader import get_app_data_dir


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='SIGNDESK_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'SignDesk'
    data_dir: Path = Field(default_factory=lambda: get_app_data_dir('SignDesk'))
    log_level: str = 'INFO'

    # Page rendering
    render_scale: float = 1.5

    # Markup tools
    pen_color: str = '#FF0000'
    pen_width: float = 4.0
    highlighter_width: float = 20.0
    highlighter_opacity: float = 0.3
    text_placeholder: str = 'ข้อความ'
    text_font_size: float = 20.0
    text_box_width: float = 200.0
    arrow_head_length: float = 15.0
    arrow_head_angle_deg: float = 30.0
    undo_limit: int = 50

    # Signature layout (page pixel space)
    signature_base_x: float = 150.0
    signature_step_x: float = 200.0
    signature_base_y: float = 700.0
    signature_box_width: float = 120.0
    signature_box_height: float = 80.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
