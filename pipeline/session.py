"""Session — the user's key, campaign form, and generated results.

A session is created when the user enters an API key and cleared on
sign-out. Every generation or edit goes through it; nothing about the user
lives at module level.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

import config
from pipeline import editing
from pipeline.ad_generator import generate_campaign
from pipeline.llm import forget_client
from pipeline.regenerator import (
    RegeneratedItem,
    RegenerationRequest,
    existing_items_for,
    regenerate_item,
)
from schemas.ad_copy import (
    AdGroupInput,
    CampaignInput,
    GeneratedAdGroup,
    GenerationConfig,
    ItemPath,
    ItemType,
)

logger = logging.getLogger(__name__)

MISSING_TOPIC_MESSAGE = "Vui lòng nhập Chủ đề Chung cho chiến dịch."


class SessionError(Exception):
    """The session can't do what was asked (signed out, missing topic...)."""


class Session:
    def __init__(self, api_key: str, provider: str | None = None, model: str | None = None):
        if not api_key or not api_key.strip():
            raise SessionError("An API key is required to start a session.")
        self.session_id = uuid.uuid4().hex
        self.api_key: str | None = api_key.strip()
        self.provider = provider or config.DEFAULT_PROVIDER
        self.model = model or config.default_model_for(self.provider)
        self.campaign = CampaignInput()
        self.ad_group_inputs: list[AdGroupInput] = [AdGroupInput()]
        self.gen_config = GenerationConfig()
        self.results: list[GeneratedAdGroup] = []
        self.error: str | None = None
        self.regenerating: set[str] = set()
        self.log: list[dict[str, str]] = []

    # -- lifecycle -----------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.api_key is not None

    def clear(self):
        """Sign out: forget the key and everything generated with it."""
        if self.api_key:
            forget_client(self.api_key)
        self.api_key = None
        self.results = []
        self.error = None
        self.regenerating.clear()
        self._add_log("Signed out")

    def _require_key(self) -> str:
        if not self.api_key:
            raise SessionError("Session is signed out. Enter your API key again.")
        return self.api_key

    def _add_log(self, message: str, level: str = "info"):
        self.log.append({
            "time": datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        })
        if len(self.log) > 200:
            self.log = self.log[-200:]

    # -- form ----------------------------------------------------------------

    def set_ad_group_count(self, count: Any):
        """Resize the ad-group list to 1..10, keeping existing inputs."""
        try:
            count = int(count)
        except (TypeError, ValueError, OverflowError):
            count = 1
        count = max(1, min(config.MAX_AD_GROUPS, count))
        inputs = list(self.ad_group_inputs[:count])
        while len(inputs) < count:
            inputs.append(AdGroupInput())
        self.ad_group_inputs = inputs
        self.results = []

    def update_form(
        self,
        campaign: Optional[CampaignInput] = None,
        ad_group_inputs: Optional[list[AdGroupInput]] = None,
        gen_config: Optional[GenerationConfig] = None,
    ):
        """Replace any part of the form. Old results no longer match it and are dropped."""
        if campaign is not None:
            self.campaign = campaign
        if gen_config is not None:
            self.gen_config = gen_config
        if ad_group_inputs is not None:
            self.ad_group_inputs = list(ad_group_inputs)
            self.set_ad_group_count(len(self.ad_group_inputs))
        self.results = []
        self.error = None

    @property
    def can_generate(self) -> bool:
        return bool(self.campaign.topic.strip()) and all(
            (group.topic or "").strip() for group in self.ad_group_inputs
        )

    # -- generation ----------------------------------------------------------

    async def generate(self) -> list[GeneratedAdGroup]:
        """Run bulk generation for every ad group; replaces previous results."""
        api_key = self._require_key()
        if not self.campaign.topic.strip():
            self.error = MISSING_TOPIC_MESSAGE
            raise SessionError(MISSING_TOPIC_MESSAGE)

        self.error = None
        self.results = []
        self.regenerating.clear()
        self._add_log(f"Generating {len(self.ad_group_inputs)} ad group(s)")

        result = await generate_campaign(
            self.campaign,
            self.ad_group_inputs,
            self.gen_config,
            api_key=api_key,
            provider=self.provider,
            model=self.model,
        )
        self.results = result.ad_groups
        self.error = result.first_error
        for message in result.errors:
            self._add_log(message, level="error")
        return self.results

    async def regenerate(self, path: ItemPath) -> RegeneratedItem:
        """Regenerate one item and slot it into the current results."""
        api_key = self._require_key()
        editing.get_item(self.results, path)
        group = self.results[path.ad_group_index]
        ad_group_input = (
            self.ad_group_inputs[path.ad_group_index]
            if path.ad_group_index < len(self.ad_group_inputs)
            else AdGroupInput()
        )

        self.regenerating.add(path.item_id)
        try:
            content = await regenerate_item(
                RegenerationRequest(
                    campaign_topic=self.campaign.topic,
                    ad_group=ad_group_input,
                    item_type=path.item_type,
                    language=self.gen_config.language,
                    existing_items=existing_items_for(group, path),
                ),
                api_key=api_key,
                provider=self.provider,
                model=self.model,
            )
            # Apply to whatever the results are now; they may have been edited meanwhile.
            try:
                self.results = editing.replace_item(self.results, path, content)
            except editing.ItemNotFoundError:
                logger.info("Item %s was removed while regenerating; dropping result", path.item_id)
            return content
        finally:
            self.regenerating.discard(path.item_id)

    # -- manual edits --------------------------------------------------------

    def add_item(self, ad_group_index: int, item_type: ItemType, variant_index: int | None = None) -> ItemPath:
        self.results, path = editing.add_item(self.results, ad_group_index, item_type, variant_index)
        return path

    def edit_item(self, path: ItemPath, **fields: str):
        self.results = editing.edit_item(self.results, path, **fields)

    def delete_item(self, path: ItemPath):
        self.results = editing.delete_item(self.results, path)

    def snapshot(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "active": self.active,
            "provider": self.provider,
            "model": self.model,
            "campaign": self.campaign.model_dump(),
            "ad_group_inputs": [g.model_dump(by_alias=True) for g in self.ad_group_inputs],
            "config": self.gen_config.model_dump(),
            "results": [g.model_dump(by_alias=True) for g in self.results],
            "error": self.error,
            "can_generate": self.can_generate,
            "regenerating": sorted(self.regenerating),
            "log": self.log[-50:],
        }


class SessionStore:
    """In-memory sessions by id."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create(self, api_key: str, provider: str | None = None, model: str | None = None) -> Session:
        session = Session(api_key, provider=provider, model=model)
        self._sessions[session.session_id] = session
        logger.info("Session %s created [%s/%s]", session.session_id[:8], session.provider, session.model)
        return session

    def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None or not session.active:
            raise SessionError(f"Session '{session_id}' not found")
        return session

    def close(self, session_id: str):
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionError(f"Session '{session_id}' not found")
        session.clear()
        logger.info("Session %s closed", session_id[:8])

    def clear(self):
        for session in self._sessions.values():
            session.clear()
        self._sessions.clear()
