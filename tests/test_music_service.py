import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.core.exceptions import NotFoundError, StorageError, UnauthorizedError, ValidationError
from musicstore.models.music import Music
from musicstore.models.purchase import Purchase
from musicstore.models.review import Review
from musicstore.models.user import User
from musicstore.services.music_service import MusicService
from musicstore.services.review_service import ReviewService
from tests.conftest import FakeStorage, audio_file, cover_file

FIELDS = {"name": "Night Drive", "price": "4.99", "category": "Music", "genre": "Synthwave"}


@pytest.mark.asyncio
async def test_create_assigns_uploader_and_stores_files(music_service: MusicService, storage: FakeStorage):
    music = await music_service.create(FIELDS, audio_file(), cover_file(), uploader="maya99")

    assert music.id is not None
    assert music.artist_username == "maya99"
    assert music.price == Decimal("4.99")
    assert music.average_rating == Decimal("0.00")
    assert music.total_reviews == 0
    assert music.is_flagged is False
    assert music.created_at is not None and music.updated_at is not None
    assert music.original_file_name == "track.mp3"
    assert music.audio_file_path in storage.files
    assert music.image_url in storage.files
    # audio is written before the cover image
    assert [ct for _, ct in storage.uploads] == ["audio/mpeg", "image/png"]


@pytest.mark.asyncio
async def test_create_ignores_forged_artist_field(music_service: MusicService):
    music = await music_service.create(
        {**FIELDS, "artist_username": "impostor"}, audio_file(), cover_file(), uploader="maya99"
    )
    assert music.artist_username == "maya99"


@pytest.mark.asyncio
async def test_create_rejects_image_as_audio(music_service: MusicService, storage: FakeStorage):
    with pytest.raises(ValidationError) as exc:
        await music_service.create(FIELDS, audio_file(content_type="image/png"), cover_file(), uploader="maya99")
    assert "music_file" in {v.field for v in exc.value.violations}
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_create_rejects_audio_as_cover(music_service: MusicService):
    with pytest.raises(ValidationError):
        await music_service.create(FIELDS, audio_file(), cover_file(content_type="audio/mpeg"), uploader="maya99")


@pytest.mark.asyncio
async def test_create_requires_both_files(music_service: MusicService):
    with pytest.raises(ValidationError):
        await music_service.create(FIELDS, None, cover_file(), uploader="maya99")
    with pytest.raises(ValidationError):
        await music_service.create(FIELDS, audio_file(data=b""), cover_file(), uploader="maya99")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, uploader",
    [
        ({**FIELDS, "name": "  "}, "maya99"),
        ({**FIELDS, "category": ""}, "maya99"),
        ({**FIELDS, "price": "0"}, "maya99"),
        (FIELDS, ""),
    ],
)
async def test_create_field_rules(music_service: MusicService, fields, uploader):
    with pytest.raises(ValidationError):
        await music_service.create(fields, audio_file(), cover_file(), uploader=uploader)


@pytest.mark.asyncio
@pytest.mark.parametrize("price", ["0.004", "1e30", "1000000000"])
async def test_create_rejects_price_the_column_cannot_hold(
    music_service: MusicService, storage: FakeStorage, price
):
    with pytest.raises(ValidationError) as exc:
        await music_service.create({**FIELDS, "price": price}, audio_file(), cover_file(), uploader="maya99")
    assert "price" in {v.field for v in exc.value.violations}
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_create_rejects_oversized_audio(db_session, storage: FakeStorage):
    from musicstore.repositories.music_repository import MusicRepository

    service = MusicService(MusicRepository(db_session), storage, max_audio_bytes=8)
    with pytest.raises(ValidationError):
        await service.create(FIELDS, audio_file(data=b"0123456789"), cover_file(), uploader="maya99")


@pytest.mark.asyncio
async def test_create_surfaces_storage_failure(music_service: MusicService, storage: FakeStorage):
    storage.fail_uploads_after = 1
    with pytest.raises(StorageError):
        await music_service.create(FIELDS, audio_file(), cover_file(), uploader="maya99")
    # no compensation for the audio write that already happened
    assert len(storage.files) == 1


@pytest.mark.asyncio
async def test_get_unknown_raises_not_found(music_service: MusicService):
    with pytest.raises(NotFoundError):
        await music_service.get(uuid.uuid4())


@pytest.mark.asyncio
async def test_update_by_owner(music_service: MusicService, track: Music):
    before = track.updated_at
    updated = await music_service.update(
        track.id,
        {"name": "Blue Horizon (Remastered)", "price": "2.49", "artist_username": "someone_else"},
        caller="maya99",
    )
    assert updated.name == "Blue Horizon (Remastered)"
    assert updated.price == Decimal("2.49")
    assert updated.artist_username == "maya99"
    assert updated.updated_at >= before


@pytest.mark.asyncio
async def test_update_by_non_owner_leaves_record_unchanged(music_service: MusicService, track: Music):
    with pytest.raises(UnauthorizedError):
        await music_service.update(track.id, {"name": "Stolen"}, caller="rival_artist")

    reloaded = await music_service.get(track.id)
    assert reloaded.name == "Blue Horizon"
    assert reloaded.artist_username == "maya99"


@pytest.mark.asyncio
async def test_update_validates_fields(music_service: MusicService, track: Music):
    with pytest.raises(ValidationError):
        await music_service.update(track.id, {"price": "-5"}, caller="maya99")
    with pytest.raises(NotFoundError):
        await music_service.update(uuid.uuid4(), {"name": "x"}, caller="maya99")


@pytest.mark.asyncio
async def test_update_rejects_sub_cent_price(music_service: MusicService, track: Music):
    with pytest.raises(ValidationError):
        await music_service.update(track.id, {"price": Decimal("0.001")}, caller="maya99")
    assert (await music_service.get(track.id)).price == Decimal("1.99")


@pytest.mark.asyncio
async def test_delete_removes_reviews_and_detaches_purchases(
    db_session,
    music_service: MusicService,
    review_service: ReviewService,
    storage: FakeStorage,
    track: Music,
    customer_user: User,
):
    await review_service.add_review(track.id, customer_user, 4, "nice")
    db_session.add(
        Purchase(
            customer_id=customer_user.id,
            music_id=track.id,
            music_name=track.name,
            artist_username=track.artist_username,
            price_paid=track.price,
        )
    )
    await db_session.flush()

    await music_service.delete(track.id, caller="maya99")

    with pytest.raises(NotFoundError):
        await music_service.get(track.id)
    reviews = (await db_session.execute(select(Review).where(Review.music_id == track.id))).scalars().all()
    assert reviews == []
    purchase = (await db_session.execute(select(Purchase))).scalar_one()
    assert purchase.music_id is None
    assert purchase.music_name == "Blue Horizon"
    assert storage.files == {}


@pytest.mark.asyncio
async def test_failed_delete_keeps_track_and_reviews(
    db_session,
    monkeypatch,
    music_service: MusicService,
    review_service: ReviewService,
    storage: FakeStorage,
    track: Music,
    customer_user: User,
):
    track_id = track.id
    await review_service.add_review(track_id, customer_user, 5, "great")
    await db_session.commit()

    execute = AsyncSession.execute
    issued = []

    async def failing_execute(self, statement, *args, **kwargs):
        issued.append(str(statement))
        if str(statement).startswith("DELETE FROM music "):
            raise OperationalError(str(statement), {}, Exception("disk I/O error"))
        return await execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", failing_execute)
    with pytest.raises(StorageError):
        await music_service.delete(track_id, caller="maya99")
    monkeypatch.undo()
    # the review delete went out before the track delete failed
    assert any(s.startswith("DELETE FROM reviews ") for s in issued)

    music = await music_service.get(track_id)
    assert music.name == "Blue Horizon"
    assert music.total_reviews == 1
    reviews = (await db_session.execute(select(Review).where(Review.music_id == track_id))).scalars().all()
    assert len(reviews) == 1
    assert len(storage.files) == 2


@pytest.mark.asyncio
async def test_delete_by_non_owner(music_service: MusicService, track: Music):
    with pytest.raises(UnauthorizedError):
        await music_service.delete(track.id, caller="rival_artist")
    assert (await music_service.get(track.id)).id == track.id


@pytest.mark.asyncio
async def test_search_is_case_insensitive_on_name_or_artist(music_service: MusicService, track: Music):
    by_name = await music_service.search("blue")
    by_artist = await music_service.search("MAYA")
    assert [m.id for m in by_name.items] == [track.id]
    assert [m.id for m in by_artist.items] == [track.id]
    assert (await music_service.search("nothing-like-this")).total_elements == 0


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(music_service: MusicService, track: Music):
    assert (await music_service.search("%")).total_elements == 0


@pytest.mark.asyncio
async def test_blank_query_and_genre_rejected(music_service: MusicService):
    with pytest.raises(ValidationError):
        await music_service.search("  ")
    with pytest.raises(ValidationError):
        await music_service.list_by_genre(None)


@pytest.mark.asyncio
async def test_list_by_genre(music_service: MusicService, track: Music):
    assert (await music_service.list_by_genre("ambient")).total_elements == 1
    assert (await music_service.list_by_genre("Rock")).total_elements == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("page, size", [(-1, 10), (0, 0), (0, -3)])
async def test_pagination_rejects_bad_arguments(music_service: MusicService, page, size):
    with pytest.raises(ValidationError):
        await music_service.list_all(page, size)


@pytest.mark.asyncio
async def test_empty_catalog_returns_empty_page(music_service: MusicService):
    page = await music_service.list_all(0, 10)
    assert page.items == []
    assert page.total_elements == 0
    assert page.total_pages == 0


@pytest.mark.asyncio
async def test_pagination_slices_results(music_service: MusicService):
    for i in range(3):
        await music_service.create({**FIELDS, "name": f"Song {i}"}, audio_file(), cover_file(), uploader="maya99")
    first = await music_service.list_by_artist("maya99", 0, 2)
    second = await music_service.list_by_artist("maya99", 1, 2)
    assert len(first.items) == 2
    assert len(second.items) == 1
    assert first.total_elements == 3
    assert first.total_pages == 2


@pytest.mark.asyncio
async def test_flag_and_unflag_move_all_fields_together(
    music_service: MusicService, track: Music, customer_user: User
):
    flagged = await music_service.flag(track.id, customer_user.id)
    assert flagged.is_flagged is True
    assert flagged.flagged_at is not None
    assert flagged.flagged_by_customer_id == customer_user.id

    with pytest.raises(ValidationError):
        await music_service.flag(track.id, customer_user.id)

    assert (await music_service.list_flagged()).total_elements == 1

    cleared = await music_service.unflag(track.id)
    assert cleared.is_flagged is False
    assert cleared.flagged_at is None
    assert cleared.flagged_by_customer_id is None
    assert (await music_service.list_flagged()).total_elements == 0


@pytest.mark.asyncio
async def test_unflag_when_not_flagged_is_noop(music_service: MusicService, track: Music):
    music = await music_service.unflag(track.id)
    assert music.is_flagged is False
    assert music.flagged_at is None
