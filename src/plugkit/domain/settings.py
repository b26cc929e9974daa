"""
Plugin-wide configuration.

Values come from keyword arguments or from ``PLUGKIT_*`` environment variables.
The settings object is registered as a global provider, so any provider can
receive it through its constructor.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from plugkit.domain.enums import CompositionPolicy


class PluginSettings(BaseSettings):
    """Runtime configuration of a plugin application."""

    model_config = SettingsConfigDict(env_prefix="PLUGKIT_", extra="ignore")

    debug: bool = Field(default=False, description="Include debug details in error responses.")
    global_composition: CompositionPolicy = Field(
        default=CompositionPolicy.CONCATENATE,
        description="How global enhancers declared by several modules are combined.",
    )
    coerce_parameters: bool = Field(
        default=True, description="Coerce annotated handler parameters that have no parameter pipe."
    )
    error_page_title: str = Field(default="Something went wrong", description="Title of rendered error pages.")
