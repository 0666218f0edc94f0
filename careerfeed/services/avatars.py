"""Avatar catalog and gender-based assignment."""

import hashlib
import random
from typing import Any, Optional

from pydantic import BaseModel


class AvatarEntry(BaseModel):
    file: str
    gender: str


DEFAULT_CATALOG = [
    AvatarEntry(file="01_female_2001.jpg.jpg", gender="female"),
    AvatarEntry(file="02_male_1998.jpg.jpg", gender="male"),
    AvatarEntry(file="03_male_1997.jpg.jpeg", gender="male"),
    AvatarEntry(file="04_female_1987.jpg.jpeg", gender="female"),
    AvatarEntry(file="5_female_1986.jpg.jpg", gender="female"),
    AvatarEntry(file="06_male_1999.jpg.jpg", gender="male"),
    AvatarEntry(file="07_female_2001.jpg.jpg", gender="female"),
    AvatarEntry(file="08_male_1968.jpg.jpg", gender="male"),
    AvatarEntry(file="09_male_1982.jpg.jpg", gender="male"),
    AvatarEntry(file="10_male_19981.jpg.jpg", gender="male"),
    AvatarEntry(file="11_male_1970.jpg.jpg", gender="male"),
    AvatarEntry(file="12_female_1989.jpg.jpg", gender="female"),
    AvatarEntry(file="12_male_2011.jpg.jpeg", gender="male"),
]


class AvatarCatalog:
    """Resolves avatar files to URLs and picks avatars for new users."""

    def __init__(
        self,
        entries: Optional[list[AvatarEntry]] = None,
        base_url: str = "/assets/faces",
        resource_prefix: str = "Faces/",
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize avatar catalog.

        Args:
            entries: Available avatars (first one is the fallback)
            base_url: URL prefix the avatar files are served under
            resource_prefix: Prefix of resource paths stored in user records
            rng: Random source, injectable for deterministic tests
        """
        self.entries = entries or list(DEFAULT_CATALOG)
        self.base_url = base_url.rstrip("/")
        self.resource_prefix = resource_prefix
        self.rng = rng or random.Random()

    @property
    def default(self) -> AvatarEntry:
        return self.entries[0]

    def random_file(self, gender: Optional[str] = "other") -> str:
        """Pick an avatar file for ``gender``, from the whole catalog if none match."""
        return self.rng.choice(self._pool(gender)).file

    def random_resource(self, gender: Optional[str] = "other") -> str:
        """Pick an avatar and return it as a stored resource path."""
        return f"{self.resource_prefix}{self.random_file(gender)}"

    def stable_resource(self, gender: Optional[str], key: str) -> str:
        """
        Pick an avatar for ``gender`` that depends only on ``key``.

        Used to decorate rows that have no stored picture, so the same user
        gets the same avatar on every read.
        """
        pool = self._pool(gender)
        digest = hashlib.sha256(key.strip().lower().encode("utf-8")).hexdigest()
        return f"{self.resource_prefix}{pool[int(digest, 16) % len(pool)].file}"

    def file_name(self, reference: str) -> str:
        """Strip the resource prefix from a stored reference."""
        if reference.startswith(self.resource_prefix):
            return reference[len(self.resource_prefix):]
        return reference

    def url_for(self, reference: Optional[str]) -> str:
        """Resolve a file name or resource path; unknown files get the default."""
        file_name = self.file_name(reference or "")
        known = {entry.file for entry in self.entries}
        if file_name not in known:
            file_name = self.default.file
        return f"{self.base_url}/{file_name}"

    def with_avatar_metadata(self, user: dict[str, Any]) -> dict[str, Any]:
        """
        Fill ``avatar`` and ``avatar_url`` on a user mapping.

        The avatar is taken from ``avatar``, then ``profile_picture``, and
        picked at random by gender when neither is set.
        """
        reference = user.get("avatar") or user.get("profile_picture")
        file_name = (
            self.file_name(reference) if reference else self.random_file(user.get("gender"))
        )
        return {**user, "avatar": file_name, "avatar_url": self.url_for(file_name)}

    def _pool(self, gender: Optional[str]) -> list[AvatarEntry]:
        normalized = (gender or "").lower()
        return [entry for entry in self.entries if entry.gender == normalized] or self.entries
