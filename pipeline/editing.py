"""Path-addressed edits on generated results.

Every function takes the current list of ad groups and returns a new list;
the input is never mutated, so a caller holding the old list (an in-flight
regeneration, say) never sees a half-applied change.
"""

from __future__ import annotations

from typing import Optional

from pipeline.sanitizer import new_item_id
from schemas.ad_copy import (
    Callout,
    Description,
    GeneratedAdGroup,
    Headline,
    ItemPath,
    ItemType,
    Sitelink,
    SitelinkContent,
)

_SITELINK_FIELDS = ("title", "description1", "description2")


class ItemNotFoundError(LookupError):
    """The path points at an ad group, variant, or item that doesn't exist."""


def _copy(ad_groups: list[GeneratedAdGroup]) -> list[GeneratedAdGroup]:
    return [group.model_copy(deep=True) for group in ad_groups]


def _section(
    ad_groups: list[GeneratedAdGroup],
    ad_group_index: int,
    item_type: ItemType,
    variant_index: Optional[int],
) -> list:
    if not 0 <= ad_group_index < len(ad_groups):
        raise ItemNotFoundError(f"No ad group #{ad_group_index}")
    group = ad_groups[ad_group_index]

    if item_type.in_variant:
        if variant_index is None or not 0 <= variant_index < len(group.variants):
            raise ItemNotFoundError(f"No variant #{variant_index} in ad group #{ad_group_index}")
        variant = group.variants[variant_index]
        return variant.headlines if item_type == ItemType.HEADLINE else variant.descriptions
    if item_type == ItemType.SITELINK:
        return group.sitelinks
    return group.callouts


def _find(items: list, item_id: str) -> int:
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx
    raise ItemNotFoundError(f"No item '{item_id}'")


def get_item(ad_groups: list[GeneratedAdGroup], path: ItemPath):
    items = _section(ad_groups, path.ad_group_index, path.item_type, path.variant_index)
    return items[_find(items, path.item_id)]


def replace_item(
    ad_groups: list[GeneratedAdGroup],
    path: ItemPath,
    content: str | SitelinkContent,
) -> list[GeneratedAdGroup]:
    """Swap an item's content, keeping its id."""
    if path.item_type == ItemType.SITELINK:
        if not isinstance(content, SitelinkContent):
            raise TypeError("Sitelinks are replaced with SitelinkContent")
        return edit_item(ad_groups, path, **content.model_dump())
    if not isinstance(content, str):
        raise TypeError(f"A {path.item_type.value} is replaced with text")
    return edit_item(ad_groups, path, text=content)


def edit_item(ad_groups: list[GeneratedAdGroup], path: ItemPath, **fields: str) -> list[GeneratedAdGroup]:
    """Manual edit: set the given text fields on one item."""
    allowed = _SITELINK_FIELDS if path.item_type == ItemType.SITELINK else ("text",)
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown field(s) for {path.item_type.value}: {sorted(unknown)}")

    updated = _copy(ad_groups)
    items = _section(updated, path.ad_group_index, path.item_type, path.variant_index)
    idx = _find(items, path.item_id)
    items[idx] = items[idx].model_copy(update={k: str(v) for k, v in fields.items()})
    return updated


def add_item(
    ad_groups: list[GeneratedAdGroup],
    ad_group_index: int,
    item_type: ItemType,
    variant_index: Optional[int] = None,
) -> tuple[list[GeneratedAdGroup], ItemPath]:
    """Append an empty item; returns the new list and the new item's path."""
    updated = _copy(ad_groups)
    items = _section(updated, ad_group_index, item_type, variant_index)
    item_id = new_item_id()
    if item_type == ItemType.HEADLINE:
        items.append(Headline(id=item_id))
    elif item_type == ItemType.DESCRIPTION:
        items.append(Description(id=item_id))
    elif item_type == ItemType.SITELINK:
        items.append(Sitelink(id=item_id))
    else:
        items.append(Callout(id=item_id))

    path = ItemPath(
        ad_group_index=ad_group_index,
        item_type=item_type,
        variant_index=variant_index if item_type.in_variant else None,
        item_id=item_id,
    )
    return updated, path


def delete_item(ad_groups: list[GeneratedAdGroup], path: ItemPath) -> list[GeneratedAdGroup]:
    updated = _copy(ad_groups)
    items = _section(updated, path.ad_group_index, path.item_type, path.variant_index)
    del items[_find(items, path.item_id)]
    return updated
