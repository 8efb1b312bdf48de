"""
Unit tests for request schema validation.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from notevault.core.schemas.auth import PasswordChangeRequest, RegisterRequest
from notevault.core.schemas.notes import BulkActionRequest, NoteCreate, NotePatch
from notevault.core.schemas.sharing import ShareRequest


class TestNoteCreate:
    def test_valid(self):
        note = NoteCreate(title="My first note", content="Hello auditing world", tags=["audit", "sql_alchemy"])
        assert note.pinned is False
        assert note.color is None

    @pytest.mark.parametrize("color,expected", [("#2563eb", "#2563eb"), ("2563EB", "#2563EB"), (" #abcdef ", "#abcdef")])
    def test_color_is_normalized(self, color, expected):
        assert NoteCreate(title="Colored", content="a colorful note", color=color).color == expected

    @pytest.mark.parametrize("color", ["blue", "#12345", "#1234567", "#GGGGGG"])
    def test_bad_color(self, color):
        with pytest.raises(ValidationError):
            NoteCreate(title="Colored", content="a colorful note", color=color)

    @pytest.mark.parametrize(
        "tags",
        [
            ["a", "b", "c", "d", "e", "f"],
            ["has space"],
            ["x" * 31],
            ["   "],
            ["semi;colon"],
        ],
    )
    def test_bad_tags(self, tags):
        with pytest.raises(ValidationError):
            NoteCreate(title="Tagged", content="a tagged note body", tags=tags)

    @pytest.mark.parametrize(
        "fields",
        [
            {"title": "ab", "content": "long enough content"},
            {"title": "   ", "content": "long enough content"},
            {"title": "Valid", "content": "short"},
            {"title": "x" * 256, "content": "long enough content"},
        ],
    )
    def test_bad_title_or_content(self, fields):
        with pytest.raises(ValidationError):
            NoteCreate(**fields)


class TestNotePatch:
    def test_everything_optional(self):
        patch = NotePatch()
        assert patch.model_dump(exclude_none=True) == {}

    def test_fields_still_validated(self):
        with pytest.raises(ValidationError):
            NotePatch(title="ab")
        with pytest.raises(ValidationError):
            NotePatch(color="red")


class TestBulkActionRequest:
    def test_ids_are_deduplicated(self):
        note_id = uuid.uuid4()
        request = BulkActionRequest(action="RESTORE", ids=[note_id, note_id])
        assert request.ids == {note_id}

    def test_needs_ids_and_known_action(self):
        with pytest.raises(ValidationError):
            BulkActionRequest(action="DELETE_SOFT", ids=[])
        with pytest.raises(ValidationError):
            BulkActionRequest(action="ARCHIVE", ids=[uuid.uuid4()])


class TestShareRequest:
    def test_defaults(self):
        request = ShareRequest()
        assert request.expires_at is None
        assert request.no_expiry is False
        assert request.one_time is False

    def test_expiry_window(self):
        now = datetime.now(timezone.utc)
        assert ShareRequest(expires_at=now + timedelta(days=1)).expires_at is not None
        with pytest.raises(ValidationError):
            ShareRequest(expires_at=now + timedelta(minutes=1))
        with pytest.raises(ValidationError):
            ShareRequest(expires_at=now + timedelta(days=31))

    def test_naive_expiry_is_utc(self):
        naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=2)
        assert ShareRequest(expires_at=naive).expires_at.tzinfo == timezone.utc


class TestAuthSchemas:
    @pytest.mark.parametrize("password", ["alllower1!", "ALLUPPER1!", "NoDigits!!", "NoSymbol12", "Has Space1!"])
    def test_weak_passwords(self, password):
        with pytest.raises(ValidationError):
            RegisterRequest(username="carol", email="carol@example.com", password=password)
        with pytest.raises(ValidationError):
            PasswordChangeRequest(current_password="whatever", new_password=password)

    def test_username_characters(self):
        with pytest.raises(ValidationError):
            RegisterRequest(username="bad name", email="carol@example.com", password="Secret123!")
        with pytest.raises(ValidationError):
            RegisterRequest(username="carol", email="not-an-email", password="Secret123!")
