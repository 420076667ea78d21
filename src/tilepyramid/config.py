"""Configuration helpers for constructing pyramid stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError, InvalidArgumentError
from .types import Format, to_crs

if TYPE_CHECKING:
    from .store import PyramidStore


class StoreConfig(BaseModel):
    """Serializable configuration describing how to build a store instance."""

    identifier: Optional[str] = Field(None, description="Store identifier carried by its events")
    default_crs: str = Field(
        default="EPSG:4326", description="Frame used when aggregating the envelopes of all pyramids"
    )
    default_format: Optional[Union[Format, str]] = Field(
        None, description="Format tag given to pyramids created without one"
    )
    validate_tiles: bool = Field(
        default=True, description="Reject tile positions outside a grid mosaic"
    )

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """Validate a plain mapping (e.g. parsed from a settings file)."""

        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid store configuration: {exc}", cause=exc) from exc

    @field_validator("default_crs")
    @classmethod
    def ensure_known_crs(cls, value: str) -> str:
        try:
            to_crs(value)
        except InvalidArgumentError as exc:
            raise ValueError(str(exc)) from exc
        return value

    def format_tag(self) -> Optional[str]:
        if isinstance(self.default_format, Format):
            return self.default_format.value
        return self.default_format

    def store_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments used when instantiating the store."""

        kwargs: Dict[str, Any] = {"config": self}
        if self.identifier is not None:
            kwargs["identifier"] = self.identifier
        return kwargs

    def build_store(self) -> "PyramidStore":
        """Create an in-memory store for this configuration."""

        from .store import PyramidStore

        return PyramidStore(**self.store_kwargs())
