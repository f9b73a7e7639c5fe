from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.railroad import LayoutConfig
from adapters.measure.cell_metrics import CellMetrics
from domain.services.assemble_diagrams import ErrorPolicy

DEFAULT_CONFIG_PATH = Path("config/trailer.yaml")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class LayoutSettings(BaseModel):
    rail_margin: float = Field(default=10.0, ge=0)
    empty_height: float = Field(default=20.0, ge=0)
    empty_padding: float = Field(default=5.0, ge=0)
    vspace: float = Field(default=10.0, ge=0)
    branch_margin: float = Field(default=20.0, ge=0)
    stub_length: float = Field(default=10.0, ge=0)

    @field_validator("stub_length", mode="after")
    @classmethod
    def stub_fits_margin(cls, value: float, info: ValidationInfo) -> float:
        margin = info.data.get("branch_margin")
        if margin is not None and value > margin:
            msg = "layout.stub_length must not exceed layout.branch_margin"
            raise ValueError(msg)
        return value

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            rail_margin=self.rail_margin,
            empty_height=self.empty_height,
            empty_padding=self.empty_padding,
            vspace=self.vspace,
            branch_margin=self.branch_margin,
            stub_length=self.stub_length,
        )


class MeasureSettings(BaseModel):
    char_width: float = Field(default=8.0, gt=0)
    special_char_width: float | None = Field(default=None, gt=0)
    line_height: float = Field(default=16.0, gt=0)
    padding_x: float = Field(default=8.0, ge=0)
    padding_y: float = Field(default=4.0, ge=0)

    def to_metrics(self) -> CellMetrics:
        return CellMetrics(
            char_width=self.char_width,
            special_char_width=self.special_char_width,
            line_height=self.line_height,
            padding_x=self.padding_x,
            padding_y=self.padding_y,
        )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TRAILER_", env_nested_delimiter="__")

    layout: LayoutSettings = LayoutSettings()
    measure: MeasureSettings = MeasureSettings()
    on_error: ErrorPolicy = ErrorPolicy.ABORT
    output_dir: Path = Path("data/diagrams")
    log_level: str = "WARNING"

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("on_error", mode="before")
    @classmethod
    def normalize_on_error(cls, value: object) -> str:
        if isinstance(value, ErrorPolicy):
            return value.value
        return str(value).strip().lower() if value else ErrorPolicy.ABORT.value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        level = str(value or "WARNING").strip().upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(_LOG_LEVELS)}"
            raise ValueError(msg)
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("TRAILER_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
