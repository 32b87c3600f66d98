"""Catalog service: validation, ownership and lifecycle rules for music listings."""
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from musicstore.config import settings
from musicstore.core.exceptions import FieldViolation, NotFoundError, StorageError, UnauthorizedError, ValidationError
from musicstore.models.music import Music
from musicstore.repositories.base import Page
from musicstore.repositories.music_repository import MusicRepository
from musicstore.repositories.review_repository import ReviewRepository
from musicstore.services.storage_service import StorageService, generate_audio_key, generate_image_key
from musicstore.services.validation import (
    EDITABLE_FIELDS,
    clean_music_fields,
    require_text,
    validate_media_type,
    validate_music_fields,
    validate_page,
)

module_logger = logging.getLogger(__name__)

MAX_RATING = Decimal("5.00")
ZERO_RATING = Decimal("0.00")
_MB = 1024 * 1024


@dataclass
class UploadedFile:
    """A file received from the client, detached from the web framework."""

    filename: str | None
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class MusicService:
    def __init__(
        self,
        repository: MusicRepository,
        storage: StorageService,
        logger: logging.Logger | None = None,
        max_audio_bytes: int = settings.MAX_AUDIO_UPLOAD_MB * _MB,
        max_image_bytes: int = settings.MAX_IMAGE_UPLOAD_MB * _MB,
        max_page_size: int = settings.MAX_PAGE_SIZE,
    ):
        self.repository = repository
        self.storage = storage
        self.logger = logger or module_logger
        self.max_audio_bytes = max_audio_bytes
        self.max_image_bytes = max_image_bytes
        self.max_page_size = max_page_size

    # ── Create ────────────────────────────────────────────────

    async def create(
        self,
        fields: Mapping[str, Any],
        audio_file: UploadedFile | None,
        cover_image: UploadedFile | None,
        uploader: str | None,
    ) -> Music:
        violations = validate_music_fields(fields)
        if not uploader or not uploader.strip():
            violations.append(FieldViolation("artist_username", "Artist username is required"))
        violations += self._check_file(audio_file, "audio/", "music_file", "audio", self.max_audio_bytes)
        violations += self._check_file(cover_image, "image/", "cover_image", "image", self.max_image_bytes)
        if violations:
            self.logger.warning(
                "Rejected upload from %s: %s", uploader, "; ".join(v.message for v in violations)
            )
            raise ValidationError(violations=violations)

        # Audio first, then cover; a failed second write leaves the first in place.
        audio_key = await self.storage.upload(
            audio_file.data, generate_audio_key(audio_file.filename), audio_file.content_type
        )
        image_key = await self.storage.upload(
            cover_image.data, generate_image_key(cover_image.filename), cover_image.content_type
        )

        now = datetime.now(timezone.utc)
        music = Music(
            **clean_music_fields(fields),
            artist_username=uploader.strip(),
            audio_file_path=audio_key,
            image_url=image_key,
            original_file_name=audio_file.filename,
            average_rating=ZERO_RATING,
            total_reviews=0,
            is_flagged=False,
            created_at=now,
            updated_at=now,
        )
        music = await self.repository.save(music)
        self.logger.info("Artist %s uploaded '%s' (ID: %s)", music.artist_username, music.name, music.id)
        return music

    @staticmethod
    def _check_file(
        upload: UploadedFile | None, prefix: str, field: str, label: str, max_bytes: int
    ) -> list[FieldViolation]:
        if upload is None or not upload.data:
            return [FieldViolation(field, f"{label.capitalize()} file is required")]
        violations = validate_media_type(upload.content_type, prefix, field, label)
        if upload.size > max_bytes:
            violations.append(FieldViolation(field, f"{label.capitalize()} file exceeds {max_bytes // _MB} MB"))
        return violations

    # ── Read ──────────────────────────────────────────────────

    async def get(self, music_id: uuid.UUID) -> Music:
        music = await self.repository.find_by_id(music_id)
        if music is None:
            raise NotFoundError(f"Music {music_id} not found")
        return music

    async def list_all(self, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE) -> Page[Music]:
        validate_page(page, size, self.max_page_size)
        return await self.repository.find_all(page, size)

    async def list_by_genre(self, genre: str | None, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE) -> Page[Music]:
        genre = require_text(genre, "genre", "Genre")
        validate_page(page, size, self.max_page_size)
        return await self.repository.find_by_genre(genre, page, size)

    async def search(self, query: str | None, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE) -> Page[Music]:
        query = require_text(query, "query", "Search query")
        validate_page(page, size, self.max_page_size)
        return await self.repository.search_by_name_or_artist(query, page, size)

    async def list_by_artist(self, artist_username: str, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE) -> Page[Music]:
        artist_username = require_text(artist_username, "artist_username", "Artist username")
        validate_page(page, size, self.max_page_size)
        return await self.repository.find_by_artist(artist_username, page, size)

    async def list_flagged(self, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE) -> Page[Music]:
        validate_page(page, size, self.max_page_size)
        return await self.repository.find_flagged(page, size)

    # ── Mutations ─────────────────────────────────────────────

    async def get_owned(self, music_id: uuid.UUID, caller: str) -> Music:
        """Load a record and verify that ``caller`` is its artist."""
        music = await self.get(music_id)
        if music.artist_username != caller:
            self.logger.warning("User %s attempted to modify music %s owned by %s", caller, music_id, music.artist_username)
            raise UnauthorizedError("You can only modify your own music")
        return music

    async def update(self, music_id: uuid.UUID, fields: Mapping[str, Any], caller: str) -> Music:
        music = await self.get_owned(music_id, caller)

        changes = {key: fields[key] for key in fields if key in EDITABLE_FIELDS}
        violations = validate_music_fields(changes, partial=True)
        if violations:
            raise ValidationError(violations=violations)

        for key, value in clean_music_fields(changes).items():
            setattr(music, key, value)
        music.updated_at = datetime.now(timezone.utc)
        music = await self.repository.save(music)
        self.logger.info("Artist %s updated music %s", caller, music_id)
        return music

    async def delete(self, music_id: uuid.UUID, caller: str) -> None:
        music = await self.get_owned(music_id, caller)
        stored_keys = [key for key in (music.audio_file_path, music.image_url) if key]

        try:
            await self.repository.delete_by_id(music_id)
        except StorageError:
            self.logger.error("Deleting music %s failed, rolling back", music_id, exc_info=True)
            await self.repository.rollback()
            raise

        for key in stored_keys:
            try:
                await self.storage.delete(key)
            except StorageError:
                self.logger.warning("Could not remove stored file %s for deleted music %s", key, music_id)
        self.logger.info("Artist %s deleted music %s", caller, music_id)

    async def flag(self, music_id: uuid.UUID, customer_id: uuid.UUID) -> Music:
        music = await self.get(music_id)
        if music.is_flagged:
            raise ValidationError("Music is already flagged for review")
        music.is_flagged = True
        music.flagged_at = datetime.now(timezone.utc)
        music.flagged_by_customer_id = customer_id
        music = await self.repository.save(music)
        self.logger.info("Music %s flagged by customer %s", music_id, customer_id)
        return music

    async def unflag(self, music_id: uuid.UUID) -> Music:
        music = await self.get(music_id)
        if not music.is_flagged:
            return music
        music.is_flagged = False
        music.flagged_at = None
        music.flagged_by_customer_id = None
        music = await self.repository.save(music)
        self.logger.info("Music %s unflagged", music_id)
        return music

    async def recompute_rating(self, music_id: uuid.UUID, reviews: ReviewRepository) -> Music:
        """Refresh the cached rating aggregate from the live review set."""
        music = await self.get(music_id)
        average, count = await reviews.rating_summary(music_id)
        if average is None:
            music.average_rating = ZERO_RATING
        else:
            rounded = average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            music.average_rating = min(max(rounded, ZERO_RATING), MAX_RATING)
        music.total_reviews = count
        music = await self.repository.save(music)
        self.logger.debug("Music %s rating now %s over %d reviews", music_id, music.average_rating, count)
        return music
