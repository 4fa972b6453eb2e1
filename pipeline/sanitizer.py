"""Coerce an untrusted parsed response into a GeneratedAdGroup.

`sanitize_ad_group` is total: whatever shape the model returned, the result
respects the configured counts, every text field is a string, and every item
carries a fresh id (ids coming back from the model are ignored).
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from schemas.ad_copy import (
    AdGroupInput,
    AdVariant,
    Callout,
    Description,
    GeneratedAdGroup,
    GenerationConfig,
    Headline,
    Sitelink,
)

logger = logging.getLogger(__name__)

UNTITLED_AD_GROUP = "Untitled Ad Group"
FAILED_AD_GROUP_NAME = "Error Generating Name"
GENERATION_FAILED = "Generation Failed"


def new_item_id() -> str:
    """Unique-per-session item id: nanosecond clock plus a random part."""
    return f"item-{time.time_ns()}-{uuid.uuid4().hex[:12]}"


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _field(obj: Any, name: str) -> str:
    if not isinstance(obj, dict):
        return ""
    return _text(obj.get(name))


def _list(obj: Any, name: str) -> list:
    if not isinstance(obj, dict):
        return []
    value = obj.get(name)
    return value if isinstance(value, list) else []


def sanitize_ad_group(data: Any, config: GenerationConfig) -> GeneratedAdGroup:
    name = data.get("adGroupName") if isinstance(data, dict) else None
    if not isinstance(name, str):
        name = UNTITLED_AD_GROUP

    variants = [
        AdVariant(
            headlines=[
                Headline(id=new_item_id(), text=_field(h, "text"))
                for h in _list(v, "headlines")[:config.headlines]
            ],
            descriptions=[
                Description(id=new_item_id(), text=_field(d, "text"))
                for d in _list(v, "descriptions")[:config.descriptions]
            ],
        )
        for v in _list(data, "variants")[:config.variants]
    ]

    sitelinks = [
        Sitelink(
            id=new_item_id(),
            title=_field(s, "title"),
            description1=_field(s, "description1"),
            description2=_field(s, "description2"),
        )
        for s in _list(data, "sitelinks")[:config.sitelinks]
    ]

    callouts = [
        Callout(id=new_item_id(), text=_field(c, "text"))
        for c in _list(data, "callouts")[:config.callouts]
    ]

    logger.debug(
        "Sanitized '%s': %d variants, %d sitelinks, %d callouts",
        name, len(variants), len(sitelinks), len(callouts),
    )
    return GeneratedAdGroup(
        ad_group_name=name,
        variants=variants,
        sitelinks=sitelinks,
        callouts=callouts,
    )


def failed_ad_group(ad_group_input: AdGroupInput, config: GenerationConfig) -> GeneratedAdGroup:
    """Placeholder result for an ad group whose generation failed.

    Keeps the form populated: at least one variant with one headline and one
    description, and as many extensions as were asked for.
    """
    variants = [
        AdVariant(
            headlines=[
                Headline(id=new_item_id(), text=GENERATION_FAILED)
                for _ in range(config.headlines or 1)
            ],
            descriptions=[
                Description(id=new_item_id(), text=GENERATION_FAILED)
                for _ in range(config.descriptions or 1)
            ],
        )
        for _ in range(config.variants or 1)
    ]
    return GeneratedAdGroup(
        ad_group_name=ad_group_input.topic or FAILED_AD_GROUP_NAME,
        variants=variants,
        sitelinks=[
            Sitelink(
                id=new_item_id(),
                title=GENERATION_FAILED,
                description1=GENERATION_FAILED,
                description2=GENERATION_FAILED,
            )
            for _ in range(config.sitelinks)
        ],
        callouts=[
            Callout(id=new_item_id(), text=GENERATION_FAILED)
            for _ in range(config.callouts)
        ],
    )
