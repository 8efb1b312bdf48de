"""Unit tests for NoteQueryService against a real database."""

import pytest

from notevault.core.cache import NOTE_CACHE
from notevault.core.exceptions import AccessDeniedError, NoteNotFoundError
from notevault.core.repositories.pagination import PageRequest
from notevault.core.schemas.notes import NoteCreate, NoteCriteria
from notevault.core.services.note_command_service import NoteCommandService
from notevault.core.services.note_query_service import NoteQueryService

PAGE = PageRequest(page=1, per_page=20)


@pytest.fixture
def commands(test_session, cache):
    return NoteCommandService(test_session, cache=cache)


@pytest.fixture
def queries(test_session, cache):
    return NoteQueryService(test_session, cache=cache)


def _note(title, **kwargs):
    kwargs.setdefault("content", "content long enough for a note")
    return NoteCreate(title=title, **kwargs)


async def test_listing_is_scoped_to_owner_and_hides_trash(commands, queries, alice_principal, bob_principal):
    keep = await commands.create(_note("Keep me"), alice_principal)
    trashed = await commands.create(_note("Throw away"), alice_principal)
    await commands.create(_note("Bob's note"), bob_principal)
    await commands.delete_for_current_user(trashed.id, alice_principal)

    result = await queries.find_all_for_current_user(alice_principal, None, PAGE)

    assert result.total == 1
    assert [note.id for note in result.items] == [keep.id]

    trash = await queries.find_deleted_for_current_user(alice_principal, None, PAGE)
    assert [note.id for note in trash.items] == [trashed.id]
    assert trash.items[0].deleted is True
    assert trash.items[0].deleted_by == "alice"
    assert trash.items[0].deleted_at is not None


async def test_admin_listing_spans_owners(commands, queries, alice_principal, bob_principal):
    await commands.create(_note("Alice note"), alice_principal)
    await commands.create(_note("Bob note"), bob_principal)

    everything = await queries.find_all(None, PAGE)
    only_bob = await queries.find_all(NoteCriteria(owner="BOB"), PAGE)

    assert everything.total == 2
    assert [note.owner for note in only_bob.items] == ["bob"]


async def test_pinned_notes_come_first(commands, queries, alice_principal):
    await commands.create(_note("First"), alice_principal)
    pinned = await commands.create(_note("Pinned", pinned=True), alice_principal)
    await commands.create(_note("Last"), alice_principal)

    result = await queries.find_all_for_current_user(alice_principal, None, PAGE)

    assert result.items[0].id == pinned.id
    assert result.total == 3


async def test_sort_parameter_applies_after_pinned(commands, queries, alice_principal):
    await commands.create(_note("bbb"), alice_principal)
    await commands.create(_note("aaa"), alice_principal)
    await commands.create(_note("ccc"), alice_principal)

    page = PageRequest(page=1, per_page=20, sort=["title,asc", "nope,desc"])
    result = await queries.find_all_for_current_user(alice_principal, None, page)

    assert [note.title for note in result.items] == ["aaa", "bbb", "ccc"]


async def test_criteria_filters(commands, queries, alice_principal):
    await commands.create(_note("Groceries", content="buy MILK and bread", tags=["home"]), alice_principal)
    await commands.create(_note("Sprint plan", tags=["Work"], color="#2563eb"), alice_principal)
    await commands.create(_note("Ideas", pinned=True, tags=["work", "ideas"]), alice_principal)

    async def titles(**criteria):
        result = await queries.find_all_for_current_user(alice_principal, NoteCriteria(**criteria), PAGE)
        return sorted(note.title for note in result.items)

    assert await titles(query="milk") == ["Groceries"]
    assert await titles(query="PLAN") == ["Sprint plan"]
    assert await titles(tags=["WORK"]) == ["Ideas", "Sprint plan"]
    assert await titles(tags=["home", "ideas"]) == ["Groceries", "Ideas"]
    assert await titles(color="#2563EB") == ["Sprint plan"]
    assert await titles(pinned=True) == ["Ideas"]
    assert await titles(query="   ") == ["Groceries", "Ideas", "Sprint plan"]


async def test_pagination_metadata(commands, queries, alice_principal):
    for i in range(5):
        await commands.create(_note(f"Note {i}"), alice_principal)

    result = await queries.find_all_for_current_user(alice_principal, None, PageRequest(page=2, per_page=2))

    assert result.total == 5
    assert result.pages == 3
    assert len(result.items) == 2
    assert result.has_next and result.has_prev


async def test_find_by_id_reads_through_cache(commands, queries, cache, alice_principal):
    created = await commands.create(_note("Cached"), alice_principal)

    first = await queries.find_by_id(created.id)
    assert first.title == "Cached"

    entry = await cache.get(NOTE_CACHE, created.id)
    entry["title"] = "Served from cache"
    await cache.put(NOTE_CACHE, created.id, entry)

    second = await queries.find_by_id(created.id)
    assert second.title == "Served from cache"


async def test_writes_evict_cached_note(commands, queries, cache, alice_principal):
    created = await commands.create(_note("Before"), alice_principal)
    await queries.find_by_id(created.id)
    assert await cache.get(NOTE_CACHE, created.id) is not None

    await commands.delete(created.id, alice_principal)

    assert await cache.get(NOTE_CACHE, created.id) is None
    with pytest.raises(NoteNotFoundError):
        await queries.find_by_id(created.id)


async def test_cached_deleted_entry_is_ignored(commands, queries, cache, alice_principal):
    created = await commands.create(_note("Gone soon"), alice_principal)
    await commands.delete(created.id, alice_principal)
    stale = created.model_dump(mode="json")
    stale["deleted"] = True
    await cache.put(NOTE_CACHE, created.id, stale)

    with pytest.raises(NoteNotFoundError):
        await queries.find_by_id(created.id)


async def test_find_by_id_for_current_user_checks_read_access(
    commands, queries, alice_principal, bob_principal, admin_principal
):
    created = await commands.create(_note("Private"), alice_principal)

    assert (await queries.find_by_id_for_current_user(created.id, alice_principal)).id == created.id
    assert (await queries.find_by_id_for_current_user(created.id, admin_principal)).id == created.id
    with pytest.raises(AccessDeniedError):
        await queries.find_by_id_for_current_user(created.id, bob_principal)
