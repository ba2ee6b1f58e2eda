"""Wall posts and who gets to see them."""
from __future__ import annotations

import asyncio

import pytest

from kod_social.errors import EmptyContent, InvalidVisibility
from kod_social.services import SocialClient


def test_add_post_records_author_and_server_time(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")
    post = asyncio.run(social.wall.add_post("ann", None, "hello wall"))

    assert post.author_name == "Ann"
    assert post.visibility == "public"
    assert post.created_at is not None


def test_author_name_is_a_snapshot(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")

    async def scenario() -> list[str]:
        await social.wall.add_post("ann", "Ann Original", "first")
        await social.store.update("users/ann/profile/data", {"name": "Renamed"})
        await social.wall.add_post("ann", None, "second")
        return [post.author_name for post in await social.wall.list_posts("ann")]

    assert asyncio.run(scenario()) == ["Renamed", "Ann Original"]


@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
def test_blank_posts_are_rejected_before_writing(social: SocialClient, content: str) -> None:
    with pytest.raises(EmptyContent):
        asyncio.run(social.wall.add_post("ann", "Ann", content))
    assert social.store.document_count("wallPosts") == 0


def test_unknown_visibility_is_rejected(social: SocialClient) -> None:
    with pytest.raises(InvalidVisibility):
        asyncio.run(social.wall.add_post("ann", "Ann", "hi", visibility="friends"))


def test_posts_are_listed_newest_first(social: SocialClient) -> None:
    async def scenario() -> list[str]:
        for content in ("one", "two", "three"):
            await social.wall.add_post("ann", "Ann", content)
        await social.wall.add_post("bob", "Bob", "not ann's")
        return [post.content for post in await social.wall.list_posts("ann")]

    assert asyncio.run(scenario()) == ["three", "two", "one"]


def test_private_posts_are_only_visible_to_the_owner(social: SocialClient) -> None:
    async def scenario() -> dict[str, list[str]]:
        await social.wall.add_post("ann", "Ann", "for everyone")
        await social.wall.add_post("ann", "Ann", "diary", visibility="private")
        await social.friendships.establish("ann", "bob")
        return {
            "owner": [post.content for post in await social.wall.list_posts("ann")],
            "friend": [post.content for post in await social.wall.posts_for_viewer("ann", "bob")],
            "anonymous": [post.content for post in await social.wall.posts_for_viewer("ann", None)],
        }

    assert asyncio.run(scenario()) == {
        "owner": ["diary", "for everyone"],
        "friend": ["for everyone"],
        "anonymous": ["for everyone"],
    }


def test_friends_only_wall_hides_posts_from_strangers(social: SocialClient, make_user) -> None:
    make_user("ann", "Ann")

    async def scenario() -> dict[str, int]:
        await social.wall.add_post("ann", None, "hello")
        await social.profiles.set_wall_visibility("ann", False)
        await social.friendships.establish("ann", "bob")
        return {
            "friend": len(await social.wall.posts_for_viewer("ann", "bob")),
            "stranger": len(await social.wall.posts_for_viewer("ann", "cid")),
            "anonymous": len(await social.wall.posts_for_viewer("ann", None)),
            "owner": len(await social.wall.posts_for_viewer("ann", "ann")),
        }

    assert asyncio.run(scenario()) == {"friend": 1, "stranger": 0, "anonymous": 0, "owner": 1}


def test_watch_posts_pushes_new_posts(social: SocialClient) -> None:
    async def scenario() -> list[list[str]]:
        seen: list[list[str]] = []
        async with await social.wall.watch_posts_for_viewer("ann", "bob") as view:
            seen.append([post.content for post in await view.__anext__()])
            await social.wall.add_post("ann", "Ann", "first")
            seen.append([post.content for post in await view.__anext__()])
            await social.wall.add_post("ann", "Ann", "second")
            seen.append([post.content for post in await view.__anext__()])
        return seen

    assert asyncio.run(scenario()) == [[], ["first"], ["second", "first"]]


def test_owner_feed_includes_private_posts(social: SocialClient) -> None:
    async def scenario() -> list[tuple[str, str, str]]:
        await social.wall.add_post("u1", "Alice", "hello", "private")
        return [(post.author_name, post.content, post.visibility) for post in await social.wall.list_posts("u1")]

    assert asyncio.run(scenario()) == [("Alice", "hello", "private")]


def test_owner_live_feed_includes_private_posts(social: SocialClient) -> None:
    async def scenario() -> list[list[str]]:
        seen: list[list[str]] = []
        async with await social.wall.watch_posts("u1") as view:
            seen.append([post.content for post in await view.__anext__()])
            await social.wall.add_post("u1", "Alice", "hello", "private")
            seen.append([post.content for post in await view.__anext__()])
        return seen

    assert asyncio.run(scenario()) == [[], ["hello"]]
