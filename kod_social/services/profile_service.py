"""Profile registry: one profile document per identity, created on first sight."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..clients.identity import Identity
from ..clients.llm import LLMClient
from ..clients.storage import ObjectStorage
from ..constants import (
    DEFAULT_PLACEHOLDER_NAME,
    PROFILE_COLLECTION_TEMPLATE,
    PROFILE_DIRECTORY,
    PROFILE_DOCUMENT_ID,
)
from ..errors import BioGenerationFailed, ProfileNotFound, UploadFailed
from ..schemas import Profile, ProfileUpdateRequest, SocialLinks, records_from
from ..store import SERVER_TIMESTAMP, DocumentStore, QuerySnapshot
from .live import LiveView
from .pairing import require_user_id

logger = logging.getLogger(__name__)

BIO_PROMPT = (
    "Generate a short, engaging, and professional bio (max 100 words) for a user with the following "
    "interests: {interests}. Focus on their passion and potential value to companies."
)


def bio_prompt(interests: str) -> str:
    return BIO_PROMPT.format(interests=interests)


def profile_collection(user_id: str) -> str:
    return PROFILE_COLLECTION_TEMPLATE.format(user_id=user_id)


def profile_path(user_id: str) -> str:
    return f"{profile_collection(user_id)}/{PROFILE_DOCUMENT_ID}"


def _default_profile(identity: Identity) -> dict[str, Any]:
    email = identity.email or ""
    name = identity.display_name or (email.split("@")[0] if email else "")
    return {
        "email": identity.email,
        "name": name,
        "surname": "",
        "phone": "",
        "dob": "",
        "interests": "",
        "bio": "",
        "avatar_url": identity.photo_url or "",
        "social_links": {},
        "is_public_wall": True,
        "created_at": SERVER_TIMESTAMP,
    }


class ProfileRegistry:
    """Owns ``users/{id}/profile/data``; every mutation is made by the owner."""

    def __init__(
        self,
        store: DocumentStore,
        storage: ObjectStorage,
        *,
        placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
        llm: LLMClient | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._llm = llm
        self.placeholder_name = placeholder_name

    async def ensure_profile(self, identity: Identity) -> Profile:
        """Return the identity's profile, creating the default one if absent."""

        user_id = require_user_id(identity.id)
        path = profile_path(user_id)
        snapshot = await self._store.get(path)
        if snapshot is None:
            await self._store.set(path, _default_profile(identity))
            logger.info("Created profile for %s", user_id)
            snapshot = await self._store.get(path)
            if snapshot is None:
                raise ProfileNotFound(f"Profile for {user_id} vanished after creation")
        return Profile.from_document(snapshot)

    async def get_profile(self, user_id: str) -> Profile | None:
        snapshot = await self._store.get(profile_path(require_user_id(user_id)))
        return Profile.from_document(snapshot) if snapshot is not None else None

    async def require_profile(self, user_id: str) -> Profile:
        profile = await self.get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(f"No profile for user {user_id}")
        return profile

    def name_of(self, profile: Profile | None) -> str:
        if profile is None:
            return self.placeholder_name
        return profile.name or profile.email or self.placeholder_name

    async def display_name(self, user_id: str) -> str:
        """Name for display; a missing profile degrades to the placeholder."""

        return self.name_of(await self.get_profile(user_id))

    async def update_profile(self, user_id: str, payload: ProfileUpdateRequest) -> Profile:
        """Apply the fields the client actually sent."""

        await self.require_profile(user_id)
        update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
        update_data = {field: value.strip() for field, value in update_data.items()}
        if update_data:
            await self._store.update(profile_path(user_id), update_data)
            logger.info("Updated profile fields %s for %s", sorted(update_data), user_id)
        return await self.require_profile(user_id)

    async def update_social_links(self, user_id: str, links: SocialLinks) -> Profile:
        await self.require_profile(user_id)
        await self._store.update(profile_path(user_id), {"social_links": links.model_dump()})
        return await self.require_profile(user_id)

    async def set_wall_visibility(self, user_id: str, is_public: bool) -> Profile:
        await self.require_profile(user_id)
        await self._store.update(profile_path(user_id), {"is_public_wall": bool(is_public)})
        logger.info("Wall of %s is now %s", user_id, "public" if is_public else "friends only")
        return await self.require_profile(user_id)

    async def upload_avatar(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Upload a profile picture and point ``avatar_url`` at it."""

        await self.require_profile(user_id)
        if not data:
            raise UploadFailed("Uploaded file is empty")
        target = f"users/{user_id}/profile_pictures/{filename or 'avatar'}"
        try:
            handle = await self._storage.upload(target, data, content_type)
            url = self._storage.get_public_url(handle)
        except UploadFailed:
            raise
        except Exception as exc:
            logger.exception("Avatar upload failed for %s", user_id)
            raise UploadFailed("Unable to upload profile picture") from exc

        await self._store.update(profile_path(user_id), {"avatar_url": url})
        logger.info("Stored new avatar for %s at %s", user_id, handle.key)
        return url

    async def generate_bio(self, user_id: str) -> str:
        """Draft a bio from the stored interests. The profile itself is left unchanged."""

        profile = await self.require_profile(user_id)
        if self._llm is None:
            raise BioGenerationFailed("No text generation client is configured")
        messages = [{"role": "user", "content": bio_prompt(profile.interests)}]
        try:
            result = await asyncio.to_thread(self._llm.complete, messages=messages)
        except BioGenerationFailed:
            raise
        except Exception as exc:
            logger.exception("Bio generation failed for %s", profile.id)
            raise BioGenerationFailed() from exc

        text = (result.text or "").strip()
        if not text:
            raise BioGenerationFailed("Text generation returned no candidates")
        logger.info("Generated a %d character bio for %s", len(text), profile.id)
        return text

    async def all_profiles(self) -> list[Profile]:
        return records_from(await self._store.query(PROFILE_DIRECTORY), Profile)

    async def search_users(self, term: str, *, limit: int = 20) -> list[Profile]:
        """Case-insensitive match on name, surname or e-mail across the directory."""

        needle = term.strip().lower()
        if not needle:
            return []
        matches = [
            profile
            for profile in await self.all_profiles()
            if needle in profile.name.lower()
            or needle in profile.surname.lower()
            or needle in (profile.email or "").lower()
        ]
        matches.sort(key=lambda profile: (profile.name.lower(), profile.id))
        return matches[:limit]

    async def watch_profile(self, user_id: str) -> LiveView[Profile | None]:
        subscription = await self._store.subscribe(profile_collection(require_user_id(user_id)))

        async def _transform(snapshot: QuerySnapshot) -> Profile | None:
            for document in snapshot:
                if document.id == PROFILE_DOCUMENT_ID:
                    return Profile.from_document(document)
            return None

        return LiveView(subscription, _transform, name=f"profile:{user_id}")


__all__ = ["ProfileRegistry", "bio_prompt", "profile_collection", "profile_path"]
