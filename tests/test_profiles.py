"""Profile registry: bootstrap, edits, avatar uploads and search."""
from __future__ import annotations

import asyncio

import pytest

from kod_social.clients import Identity, InMemoryObjectStorage
from kod_social.clients.storage import StoredObject
from kod_social.errors import BioGenerationFailed, ProfileNotFound, UploadFailed
from kod_social.schemas import ProfileUpdateRequest, SocialLinksUpdate
from kod_social.services import SocialClient


def test_ensure_profile_creates_defaults_once(social: SocialClient) -> None:
    identity = Identity(id="ann", email="ann.smith@example.com")

    async def scenario() -> None:
        created = await social.profiles.ensure_profile(identity)
        assert created.id == "ann"
        assert created.name == "ann.smith"
        assert created.is_public_wall is True
        assert created.created_at is not None

        await social.profiles.update_profile("ann", ProfileUpdateRequest(bio="Hello"))
        again = await social.profiles.ensure_profile(identity)
        assert again.bio == "Hello"
        assert again.created_at == created.created_at

    asyncio.run(scenario())
    assert social.store.document_count("users/ann/profile") == 1


def test_update_profile_only_touches_sent_fields(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")

    async def scenario():
        await social.profiles.update_profile("ann", ProfileUpdateRequest(surname="  Smith ", phone="123"))
        return await social.profiles.update_profile("ann", ProfileUpdateRequest(bio="Writer"))

    profile = asyncio.run(scenario())
    assert (profile.name, profile.surname, profile.phone, profile.bio) == ("Ann", "Smith", "123", "Writer")


def test_updating_a_missing_profile_is_not_found(social: SocialClient) -> None:
    with pytest.raises(ProfileNotFound):
        asyncio.run(social.profiles.update_profile("ghost", ProfileUpdateRequest(bio="boo")))


def test_social_links_and_wall_visibility(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")
    links = SocialLinksUpdate(github="https://github.com/ann", twitter="")

    async def scenario():
        await social.profiles.update_social_links("ann", links.to_links())
        return await social.profiles.set_wall_visibility("ann", False)

    profile = asyncio.run(scenario())
    assert profile.social_links.github == "https://github.com/ann"
    assert profile.social_links.twitter == ""
    assert profile.is_public_wall is False


def test_upload_avatar_stores_object_and_updates_profile(social: SocialClient, storage: InMemoryObjectStorage, make_user) -> None:
    make_user("ann", "Ann")

    url = asyncio.run(social.profiles.upload_avatar("ann", "me.png", b"\x89PNG", "image/png"))

    assert url == "http://cdn.test/local/users/ann/profile_pictures/me.png"
    assert storage.objects["users/ann/profile_pictures/me.png"] == b"\x89PNG"
    profile = asyncio.run(social.profiles.require_profile("ann"))
    assert profile.avatar_url == url


class _BrokenStorage(InMemoryObjectStorage):
    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> StoredObject:
        raise ConnectionError("bucket unreachable")


def test_upload_failures_leave_the_profile_untouched(store, settings) -> None:
    client = SocialClient(store=store, storage=_BrokenStorage(), settings=settings)
    asyncio.run(client.profiles.ensure_profile(Identity(id="ann", email="ann@example.com")))

    with pytest.raises(UploadFailed):
        asyncio.run(client.profiles.upload_avatar("ann", "me.png", b"data"))
    with pytest.raises(UploadFailed):
        asyncio.run(client.profiles.upload_avatar("ann", "me.png", b""))
    assert asyncio.run(client.profiles.require_profile("ann")).avatar_url == ""


def test_search_matches_name_surname_and_email(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")
    make_user("bob", "Bobby")
    make_user("cid", "Cid")

    async def scenario() -> dict[str, list[str]]:
        await social.profiles.update_profile("cid", ProfileUpdateRequest(surname="Annson"))
        return {
            "ann": [profile.id for profile in await social.profiles.search_users("ANN")],
            "email": [profile.id for profile in await social.profiles.search_users("bob@")],
            "blank": [profile.id for profile in await social.profiles.search_users("  ")],
        }

    assert asyncio.run(scenario()) == {"ann": ["ann", "cid"], "email": ["bob"], "blank": []}


def test_display_name_degrades_to_placeholder(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")
    assert asyncio.run(social.profiles.display_name("ann")) == "Ann"
    assert asyncio.run(social.profiles.display_name("ghost")) == "Unknown User"


def test_session_sign_in_bootstraps_profile(social: SocialClient) -> None:
    async def scenario():
        social.identity.sign_in(Identity(id="dee", email="dee@example.com", display_name="Dee"))
        await social.settle()
        current = await social.current_identity()
        assert current is not None and current.id == "dee"
        return await social.profiles.get_profile("dee")

    profile = asyncio.run(scenario())
    assert profile is not None
    assert profile.name == "Dee"


def test_watch_profile_follows_edits(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")

    async def scenario() -> list[str]:
        seen: list[str] = []
        async with await social.profiles.watch_profile("ann") as view:
            seen.append((await view.__anext__()).bio)
            await social.profiles.update_profile("ann", ProfileUpdateRequest(bio="Now with bio"))
            seen.append((await view.__anext__()).bio)
        return seen

    assert asyncio.run(scenario()) == ["", "Now with bio"]


def test_generate_bio_prompts_with_interests_and_leaves_profile_alone(social: SocialClient, make_user, llm) -> None:
    make_user("ann", "Ann")
    llm.reply = "  Ann curates bold brands.  "

    async def scenario() -> tuple[str, str]:
        await social.profiles.update_profile("ann", ProfileUpdateRequest(interests="sneakers, design"))
        draft = await social.profiles.generate_bio("ann")
        return draft, (await social.profiles.require_profile("ann")).bio

    draft, stored_bio = asyncio.run(scenario())
    assert draft == "Ann curates bold brands."
    assert stored_bio == ""
    [messages] = llm.calls
    assert messages[0]["role"] == "user"
    assert "following interests: sneakers, design." in messages[0]["content"]
    assert "max 100 words" in messages[0]["content"]


def test_generate_bio_maps_failures_to_collaborator_errors(social: SocialClient, make_user, llm) -> None:
    make_user("ann", "Ann")

    llm.reply = "   "
    with pytest.raises(BioGenerationFailed):
        asyncio.run(social.profiles.generate_bio("ann"))

    llm.error = RuntimeError("connection reset")
    with pytest.raises(BioGenerationFailed):
        asyncio.run(social.profiles.generate_bio("ann"))

    with pytest.raises(ProfileNotFound):
        asyncio.run(social.profiles.generate_bio("nobody"))


def test_generate_bio_without_a_client_fails(store, storage, settings) -> None:
    client = SocialClient(store=store, storage=storage, settings=settings)
    asyncio.run(client.profiles.ensure_profile(Identity(id="ann", email="ann@example.com")))

    with pytest.raises(BioGenerationFailed):
        asyncio.run(client.profiles.generate_bio("ann"))
