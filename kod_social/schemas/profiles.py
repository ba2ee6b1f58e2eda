"""Schemas for profile records and profile endpoints."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl, field_validator

from ..store import DocumentSnapshot
from .base import StoredRecord


class SocialLinks(BaseModel):
    linkedin: str = ""
    twitter: str = ""
    github: str = ""


class Profile(StoredRecord):
    email: str | None = None
    name: str = ""
    surname: str = ""
    phone: str = ""
    dob: str = ""
    interests: str = ""
    bio: str = ""
    avatar_url: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    is_public_wall: bool = True
    created_at: datetime | None = None

    @classmethod
    def record_id(cls, snapshot: DocumentSnapshot) -> str:
        # Stored at users/{id}/profile/data; the owner id is the parent segment.
        parts = snapshot.collection.split("/")
        if len(parts) == 3 and parts[0] == "users":
            return parts[1]
        return snapshot.id


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=150)
    surname: str | None = Field(default=None, max_length=150)
    phone: str | None = Field(default=None, max_length=40)
    dob: str | None = Field(default=None, max_length=32)
    interests: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=1000)


class SocialLinksUpdate(BaseModel):
    linkedin: HttpUrl | None = None
    twitter: HttpUrl | None = None
    github: HttpUrl | None = None

    @field_validator("linkedin", "twitter", "github", mode="before")
    def clean_url(cls, v):
        if v in (None, "", "None"):
            return None
        return v

    def to_links(self) -> SocialLinks:
        return SocialLinks(
            linkedin=str(self.linkedin) if self.linkedin else "",
            twitter=str(self.twitter) if self.twitter else "",
            github=str(self.github) if self.github else "",
        )


class WallVisibilityUpdate(BaseModel):
    is_public_wall: bool


class AvatarUploadResponse(BaseModel):
    url: str


class BioDraftResponse(BaseModel):
    bio: str


class ProfileSearchResponse(BaseModel):
    query: str
    results: list[Profile]


__all__ = [
    "SocialLinks",
    "Profile",
    "ProfileUpdateRequest",
    "SocialLinksUpdate",
    "WallVisibilityUpdate",
    "AvatarUploadResponse",
    "BioDraftResponse",
    "ProfileSearchResponse",
]
