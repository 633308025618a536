import os
import re
from pathlib import Path
from typing import List, Literal, Optional, Tuple, Type, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import (BaseSettings, PydanticBaseSettingsSource,
                               SettingsConfigDict, YamlConfigSettingsSource)

from src.core.errors import ConfigurationError

CONFIG_FILE_ENV = "FILEBROWSER_CONFIG"
DEFAULT_CONFIG_FILE = "config.yaml"


class ServerSettings(BaseModel):
    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8080, description="API server port")
    max_upload_size: int = Field(
        default=100 * 1024 * 1024, description="Maximum upload size in bytes"
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v <= 0 or v > 65535:
            raise ValueError(f"must be between 1 and 65535, got {v}")
        return v

    @field_validator("max_upload_size")
    @classmethod
    def validate_max_upload_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v


class StorageSettings(BaseModel):
    base_path: Path = Field(
        default=Path("./storage"), description="Directory all file operations are confined to"
    )

    @field_validator("base_path")
    @classmethod
    def make_absolute(cls, v: Path) -> Path:
        if not str(v):
            raise ValueError("is required")
        return Path(os.path.abspath(v))


class FileSettings(BaseModel):
    max_name_length: int = Field(default=255, description="Maximum normalized path length")
    dir_permissions: int = Field(default=0o755, description="Mode for created directories")
    forbidden_extensions: List[str] = Field(
        default_factory=lambda: [".env", ".exe", ".sh", ".bat"],
        description="Extensions (and filename prefixes) rejected for upload and download",
    )
    valid_name_regex: str = Field(
        default=r"^[\w\-. ]+$", description="Pattern every final path segment must match"
    )

    @field_validator("max_name_length")
    @classmethod
    def validate_max_name_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("dir_permissions", mode="before")
    @classmethod
    def parse_permissions(cls, v: Union[int, str]) -> int:
        # YAML "0755" arrives as a string
        if isinstance(v, str):
            return int(v, 8)
        return v

    @field_validator("valid_name_regex")
    @classmethod
    def validate_regex(cls, v: str) -> str:
        if not v:
            raise ValueError("is required")
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}")
        return v

    @field_validator("forbidden_extensions")
    @classmethod
    def lower_extensions(cls, v: List[str]) -> List[str]:
        return [ext.lower() for ext in v if ext]


class MessageSettings(BaseModel):
    """Client-facing error texts"""

    cannot_list_directory: str = "Cannot list directory"
    forbidden_file: str = "Forbidden"
    cannot_serve: str = "Cannot serve file"
    cannot_delete: str = "Cannot delete file or folder"
    bad_request: str = "Bad request"
    not_found: str = "Not found"
    internal_error: str = "Internal server error"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FILEBROWSER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        yaml_file=DEFAULT_CONFIG_FILE,
    )

    app_name: str = Field(default="File Browser", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment mode"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    file: FileSettings = Field(default_factory=FileSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def force_json_logs_in_production(self) -> "Settings":
        if self.environment == "production":
            self.log_format = "json"
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def load_settings(config_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build settings, optionally from an explicit YAML file

    Values from the file take precedence over environment variables.

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid
    """
    data = {}
    if config_file is not None:
        path = Path(config_file)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(
                f"failed to read config file: {e}", {"config_file": str(path)}
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"failed to parse config file: {e}", {"config_file": str(path)}
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "config file must contain a mapping", {"config_file": str(path)}
            )

    try:
        return Settings(**data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError(
            f"invalid configuration: {'; '.join(errors)}", {"errors": errors}
        ) from e


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings(os.environ.get(CONFIG_FILE_ENV))
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
