"""Single-item prompt — one new headline / description / callout / sitelink.

The existing siblings are listed so the model writes something different,
and the ceiling for that item type is restated as a hard requirement.
"""

from prompts.ad_group_prompt import DEFAULT_TONE, or_not_specified
from schemas.ad_copy import (
    SITELINK_DESCRIPTION_MAX_CHARS,
    SITELINK_TITLE_MAX_CHARS,
    AdGroupInput,
    ItemType,
    SitelinkContent,
)

SINGLE_ITEM_PROMPT = """You are an expert Google Ads copywriter. Your task is to generate a single, new, high-quality ad component based on the full context provided.
The response must be in **{language}**.

**Full Ad Group Context:**
- **Overall Campaign Topic:** {campaign_topic}
- **Ad Group Topic:** {topic}
- **Landing Page (for context):** {landing_page}
- **Related Keywords:** {keywords}
- **Keywords to Emphasize (try to include):** {emphasized_keywords}
- **Desired Tone & Mood:** {tone_and_mood}
- **Content to Emphasize (Promotions, USP, etc.):** {emphasized_content}
- **IMPORTANT - Content to AVOID:** {content_to_avoid}. You must not include any themes, words, or ideas from this section.

**Specific Task:**
{task}

{response_format}
"""

TEXT_TASK = """- Generate one new, creative **{item_type}**.
- **Uniqueness:** It MUST be unique and different from these existing items: [{existing}]
- **CRITICAL - Character Limit:** The response MUST be **{max_chars} characters or less**. This is a strict requirement. DO NOT exceed this limit."""

SITELINK_TASK = """- Generate one new, creative **enhanced Sitelink**.
- It MUST have one 'title' (Sitelink Text) and **two** separate description lines ('description1', 'description2').
- **Uniqueness:** It MUST be unique and different from these existing sitelinks: [{existing}]
- **CRITICAL - Character Limits:**
  - The 'title' MUST be **{title_max} characters or less**.
  - Both 'description1' and 'description2' MUST be **{description_max} characters or less**.
- These are strict requirements. DO NOT exceed these limits."""

TEXT_RESPONSE_FORMAT = (
    "Return ONLY the text for the new item. Do not include any extra formatting, "
    "labels, quotation marks, or explanations."
)

SITELINK_RESPONSE_FORMAT = (
    'Return ONLY a raw JSON object with "title", "description1", and "description2" keys, '
    'like this: {"title": "New Sitelink Title", "description1": "New description line 1.", '
    '"description2": "New description line 2."}'
)


def _existing_list(item_type: ItemType, existing_items: list) -> str:
    if item_type == ItemType.SITELINK:
        parts = []
        for item in existing_items:
            if isinstance(item, str):
                parts.append(f'"{item}"')
                continue
            sitelink = SitelinkContent.model_validate(item, from_attributes=True)
            parts.append(f'"{sitelink.title} - {sitelink.description1} / {sitelink.description2}"')
        return ", ".join(parts)
    return ", ".join(f'"{item}"' for item in existing_items)


def build_single_item_prompt(
    campaign_topic: str,
    ad_group: AdGroupInput,
    existing_items: list,
    item_type: ItemType,
    language: str,
) -> str:
    existing = _existing_list(item_type, existing_items)
    if item_type == ItemType.SITELINK:
        task = SITELINK_TASK.format(
            existing=existing,
            title_max=SITELINK_TITLE_MAX_CHARS,
            description_max=SITELINK_DESCRIPTION_MAX_CHARS,
        )
        response_format = SITELINK_RESPONSE_FORMAT
    else:
        task = TEXT_TASK.format(
            item_type=item_type.value,
            existing=existing,
            max_chars=item_type.max_chars,
        )
        response_format = TEXT_RESPONSE_FORMAT

    return SINGLE_ITEM_PROMPT.format(
        language=language,
        campaign_topic=campaign_topic.strip(),
        topic=or_not_specified(ad_group.topic),
        landing_page=or_not_specified(ad_group.landing_page),
        keywords=or_not_specified(ad_group.keywords),
        emphasized_keywords=or_not_specified(ad_group.emphasized_keywords),
        tone_and_mood=or_not_specified(ad_group.tone_and_mood, DEFAULT_TONE),
        emphasized_content=or_not_specified(ad_group.emphasized_content),
        content_to_avoid=or_not_specified(ad_group.content_to_avoid),
        task=task,
        response_format=response_format,
    )
