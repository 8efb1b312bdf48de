"""Repository behaviour that services rely on: paging, conditional updates, purges."""

import uuid

import pytest
from sqlalchemy import func, select

from notevault.core.models.base import utcnow
from notevault.core.models.note import Note
from notevault.core.models.refresh_token import RefreshToken
from notevault.core.models.share_token import NoteShareToken
from notevault.core.models.tag import note_tags
from notevault.core.repositories.note_repository import SORTABLE_COLUMNS, NoteRepository
from notevault.core.repositories.pagination import PageRequest, parse_sort
from notevault.core.repositories.refresh_token_repository import RefreshTokenRepository
from notevault.core.repositories.share_token_repository import ShareTokenRepository
from notevault.core.repositories.tag_repository import TagRepository


def test_parse_sort_ignores_unknown_fields():
    clauses = parse_sort(["title,desc", "bogus,asc", "created_at"], SORTABLE_COLUMNS)

    assert len(clauses) == 2
    assert str(clauses[0]).endswith("DESC")
    assert str(clauses[1]).endswith("ASC")


def test_page_request_offset():
    assert PageRequest(page=3, per_page=20).offset == 40


@pytest.fixture
def notes(test_session):
    return NoteRepository(test_session)


async def _note(repo, title="Repo note", tags=(), owner="alice"):
    note = Note(title=title, content="content of the note", owner=owner, tags=list(tags))
    await repo.save(note, owner)
    await repo.session.commit()
    return note


async def test_save_records_add_then_mod(notes, test_session):
    note = await _note(notes)
    note.title = "Changed"
    await notes.save(note, "alice")
    await test_session.commit()

    page, total = await notes.revisions.find_page(note.id, PageRequest())
    assert total == 2
    assert [r.revision_type for r in page] == ["MOD", "ADD"]
    assert note.version == 2


async def test_soft_delete_is_conditional(notes, test_session):
    note = await _note(notes)

    assert await notes.soft_delete(note.id, "alice") == 1
    assert await notes.soft_delete(note.id, "alice") == 0
    await test_session.commit()
    assert await notes.get_active_by_id(note.id) is None

    assert await notes.restore(note.id, "alice") == 1
    assert await notes.restore(note.id, "alice") == 0


async def test_purge_removes_links_and_share_tokens(notes, test_session):
    tags = [await TagRepository(test_session).add("purge")]
    note = await _note(notes, tags=tags)
    test_session.add(NoteShareToken(note_id=note.id, token_hash="f" * 64, one_time=False, use_count=0, revoked=False))
    await test_session.commit()

    assert await notes.purge_by_ids([note.id]) == 1
    await test_session.commit()

    for table in (note_tags, NoteShareToken.__table__, Note.__table__):
        count = (await test_session.execute(select(func.count()).select_from(table))).scalar_one()
        assert count == 0
    assert await TagRepository(test_session).find_orphan_ids() == [tags[0].id]


async def test_find_by_ids_scoped_to_owner(notes):
    mine = await _note(notes, owner="alice")
    theirs = await _note(notes, owner="bob")

    found = await notes.find_by_ids([mine.id, theirs.id, uuid.uuid4()], owner="alice")

    assert [note.id for note in found] == [mine.id]


async def test_share_consume_stops_after_one_time_use(notes, test_session):
    note = await _note(notes)
    share = NoteShareToken(note_id=note.id, token_hash="a" * 64, one_time=True, use_count=0, revoked=False)
    repo = ShareTokenRepository(test_session)
    await repo.add(share)

    assert await repo.consume(share.id, one_time=True) == 1
    assert await repo.consume(share.id, one_time=True) == 0
    assert await repo.get_active_by_hash("a" * 64) is None
    assert await repo.revoke(share.id) == 0


async def test_refresh_token_revocation(test_session, alice):
    repo = RefreshTokenRepository(test_session)
    now = utcnow()
    for value in ("1" * 64, "2" * 64):
        await repo.add(RefreshToken(token=value, user_id=alice.id, issued_at=now, expires_at=now, revoked=False))

    first = await repo.get_active_by_hash("1" * 64)
    assert await repo.revoke(first.id) == 1
    assert await repo.revoke(first.id) == 0
    assert await repo.revoke_all_for_user(alice.id) == 1
    assert await repo.get_active_by_hash("2" * 64) is None
