"""Single-item regenerator — one new item, retried until it fits its limit.

Attempts are bounded by config.REGENERATE_MAX_ATTEMPTS. A response that
breaks a character limit (or comes back empty) is asked for again; a failed
call or an unparseable sitelink stops immediately. Either way the caller gets
a visible placeholder instead of an exception, since this only ever feeds the
editing form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

import config
from pipeline.llm import call_llm_once
from pipeline.response_parser import clean_item_text, extract_json
from prompts.single_item_prompt import build_single_item_prompt
from schemas.ad_copy import (
    SITELINK_DESCRIPTION_MAX_CHARS,
    SITELINK_TITLE_MAX_CHARS,
    AdGroupInput,
    GeneratedAdGroup,
    ItemPath,
    ItemType,
    SitelinkContent,
)

logger = logging.getLogger(__name__)

RegeneratedItem = Union[str, SitelinkContent]

_PLACEHOLDERS = {
    "vi": ("Lỗi độ dài", "Vui lòng tạo lại"),
    "en": ("Length error", "Please regenerate"),
}


class ValidationFailure(Exception):
    """A regenerated item broke a character limit or came back empty."""


@dataclass
class RegenerationRequest:
    campaign_topic: str
    ad_group: AdGroupInput
    item_type: ItemType
    language: str
    existing_items: list = field(default_factory=list)


def error_placeholder(item_type: ItemType, language: str) -> RegeneratedItem:
    """The value shown when regeneration gave up."""
    lang = "en" if language.strip().lower().startswith("english") else "vi"
    error, retry_hint = _PLACEHOLDERS[lang]
    if item_type == ItemType.SITELINK:
        return SitelinkContent(title=error, description1=retry_hint, description2=retry_hint)
    return f"{error} - {retry_hint}"


def validate_text_item(text: str, item_type: ItemType) -> str:
    if not text or len(text) > item_type.max_chars:
        raise ValidationFailure(
            f"{item_type.value} length {len(text)} outside 1..{item_type.max_chars}"
        )
    return text


def validate_sitelink(parsed) -> SitelinkContent:
    fields = parsed if isinstance(parsed, dict) else {}
    title, d1, d2 = (
        value if isinstance(value, str) else ""
        for value in (fields.get("title"), fields.get("description1"), fields.get("description2"))
    )
    if not (0 < len(title) <= SITELINK_TITLE_MAX_CHARS
            and 0 < len(d1) <= SITELINK_DESCRIPTION_MAX_CHARS
            and 0 < len(d2) <= SITELINK_DESCRIPTION_MAX_CHARS):
        raise ValidationFailure(
            f"sitelink lengths title={len(title)} d1={len(d1)} d2={len(d2)}"
        )
    return SitelinkContent(title=title, description1=d1, description2=d2)


async def regenerate_item(
    request: RegenerationRequest,
    *,
    api_key: str,
    provider: str | None = None,
    model: str | None = None,
) -> RegeneratedItem:
    """Generate one replacement item, or the error placeholder."""
    item_type = request.item_type
    prompt = build_single_item_prompt(
        request.campaign_topic,
        request.ad_group,
        request.existing_items,
        item_type,
        request.language,
    )
    max_attempts = config.REGENERATE_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        try:
            raw = await call_llm_once(prompt, api_key=api_key, provider=provider, model=model)
            if item_type == ItemType.SITELINK:
                return validate_sitelink(extract_json(raw))
            return validate_text_item(clean_item_text(raw), item_type)
        except ValidationFailure as exc:
            logger.warning(
                "%s generation exceeded limits on attempt %d/%d (%s). Retrying...",
                item_type.value, attempt, max_attempts, exc,
            )
        except Exception as exc:
            logger.error("Error generating single %s on attempt %d: %s", item_type.value, attempt, exc)
            break
    else:
        logger.error(
            "Failed to generate %s within character limits after %d attempts.",
            item_type.value, max_attempts,
        )

    return error_placeholder(item_type, request.language)


def existing_items_for(ad_group: GeneratedAdGroup, path: ItemPath) -> list:
    """Sibling content the new item must differ from."""
    if path.item_type == ItemType.HEADLINE:
        return [h.text for h in ad_group.variants[path.variant_index].headlines]
    if path.item_type == ItemType.DESCRIPTION:
        return [d.text for d in ad_group.variants[path.variant_index].descriptions]
    if path.item_type == ItemType.SITELINK:
        return [
            SitelinkContent(title=s.title, description1=s.description1, description2=s.description2)
            for s in ad_group.sitelinks
        ]
    return [c.text for c in ad_group.callouts]
