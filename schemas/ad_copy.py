"""Ad copy schemas — generation inputs, config, and the generated result.

Field aliases accept the camelCase names the form (and the model's JSON)
uses, so `GeneratedAdGroup.model_validate({"adGroupName": ...})` and
`model_dump(by_alias=True)` round-trip with the browser payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

import config


# ---------------------------------------------------------------------------
# Character limits (Google Ads)
# ---------------------------------------------------------------------------

HEADLINE_MAX_CHARS = 30
DESCRIPTION_MAX_CHARS = 90
SITELINK_TITLE_MAX_CHARS = 25
SITELINK_DESCRIPTION_MAX_CHARS = 35
CALLOUT_MAX_CHARS = 25


class ItemType(str, Enum):
    HEADLINE = "headline"
    DESCRIPTION = "description"
    SITELINK = "sitelink"
    CALLOUT = "callout"

    @property
    def max_chars(self) -> int:
        """Character ceiling for single-text items (sitelinks use the title limit)."""
        return {
            ItemType.HEADLINE: HEADLINE_MAX_CHARS,
            ItemType.DESCRIPTION: DESCRIPTION_MAX_CHARS,
            ItemType.SITELINK: SITELINK_TITLE_MAX_CHARS,
            ItemType.CALLOUT: CALLOUT_MAX_CHARS,
        }[self]

    @property
    def in_variant(self) -> bool:
        return self in (ItemType.HEADLINE, ItemType.DESCRIPTION)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class GenerationConfig(_CamelModel):
    """How much to generate per ad group. Immutable for one generation call."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    variants: int = config.DEFAULT_VARIANTS
    headlines: int = config.DEFAULT_HEADLINES
    descriptions: int = config.DEFAULT_DESCRIPTIONS
    sitelinks: int = config.DEFAULT_SITELINKS
    callouts: int = config.DEFAULT_CALLOUTS
    language: str = config.DEFAULT_LANGUAGE

    @field_validator("variants", "headlines", "descriptions", "sitelinks", "callouts", mode="before")
    @classmethod
    def _clamp_count(cls, value: Any) -> int:
        # Same rule as the number inputs: junk -> 0, then clamp to [0, 10].
        try:
            count = int(value)
        except (TypeError, ValueError, OverflowError):
            count = 0
        return max(0, min(config.MAX_ITEM_COUNT, count))

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return config.DEFAULT_LANGUAGE
        return value.strip()


class AdGroupInput(_CamelModel):
    """Free-text brief for one ad group. Every field is optional."""
    topic: Optional[str] = None
    keywords: Optional[str] = None
    emphasized_keywords: Optional[str] = Field(None, alias="emphasizedKeywords")
    landing_page: Optional[str] = Field(None, alias="landingPage")
    tone_and_mood: Optional[str] = Field(None, alias="toneAndMood")
    emphasized_content: Optional[str] = Field(None, alias="emphasizedContent")
    content_to_avoid: Optional[str] = Field(None, alias="contentToAvoid")
    extensions: Optional[str] = None


class CampaignInput(_CamelModel):
    """Campaign-level context shared by every ad group request."""
    topic: str = ""
    extensions: str = ""
    callouts: str = ""


# ---------------------------------------------------------------------------
# Generated result
# ---------------------------------------------------------------------------

class Headline(BaseModel):
    id: str
    text: str = ""


class Description(BaseModel):
    id: str
    text: str = ""


class Callout(BaseModel):
    id: str
    text: str = ""


class Sitelink(BaseModel):
    id: str
    title: str = ""
    description1: str = ""
    description2: str = ""


class SitelinkContent(BaseModel):
    """A regenerated sitelink before it is slotted into a result."""
    title: str = ""
    description1: str = ""
    description2: str = ""


class AdVariant(BaseModel):
    headlines: list[Headline] = Field(default_factory=list)
    descriptions: list[Description] = Field(default_factory=list)


class GeneratedAdGroup(_CamelModel):
    ad_group_name: str = Field("", alias="adGroupName")
    variants: list[AdVariant] = Field(default_factory=list)
    sitelinks: list[Sitelink] = Field(default_factory=list)
    callouts: list[Callout] = Field(default_factory=list)


class ItemPath(_CamelModel):
    """Address of one leaf item: ad group -> section -> (variant) -> item id."""
    ad_group_index: int = Field(..., alias="adGroupIndex", ge=0)
    item_type: ItemType = Field(..., alias="itemType")
    variant_index: Optional[int] = Field(None, alias="variantIndex", ge=0)
    item_id: str = Field(..., alias="itemId")
