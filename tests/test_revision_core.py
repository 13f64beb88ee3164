import pytest

from app.models.enums.quotation_status import RevisionAction
from app.services.eto.revision_core import next_revision, revision_kind_for_action, RevisionKind


class TestDottedRevisions:
    @pytest.mark.parametrize(
        "current, kind, expected",
        [
            ("1.0", RevisionKind.minor, "1.1"),
            ("1.0", RevisionKind.major, "2.0"),
            ("1.9", "minor", "1.10"),
            ("3.4", "major", "4.0"),
            ("x.y", "minor", "1.1"),
            ("3.x", "major", "4.0"),
            ("2.", "minor", "2.1"),
        ],
    )
    def test_next(self, current, kind, expected):
        assert next_revision(current, kind) == expected


class TestLetteredRevisions:
    @pytest.mark.parametrize(
        "current, kind, expected",
        [
            ("Rev A", RevisionKind.minor, "Rev A.1"),
            ("Rev A", RevisionKind.major, "Rev B"),
            ("Rev B.3", "minor", "Rev B.1"),
            ("Rev B.3", "major", "Rev C"),
            ("rev c", "major", "Rev D"),
            ("REV A.1", "major", "Rev B"),
            ("Rev Z", "major", "Rev AA"),
            ("Rev AZ", "major", "Rev BA"),
        ],
    )
    def test_next(self, current, kind, expected):
        assert next_revision(current, kind) == expected

    def test_unparsable_letter_falls_back(self):
        assert next_revision("Rev ?", "minor") == "Rev A.1"
        assert next_revision("Rev ?", "major") == "Rev B"

    @pytest.mark.parametrize("current", ["Review 2.1", "Reviewed", "Rev B draft"])
    def test_words_containing_rev_are_not_letters(self, current):
        assert next_revision(current, "minor") == "Rev A.1"
        assert next_revision(current, "major") == "Rev B"

    def test_family_is_preserved(self):
        rev = "Rev A"
        for _ in range(5):
            rev = next_revision(rev, "major")
            assert rev.startswith("Rev ")
        assert rev == "Rev F"


class TestFallback:
    @pytest.mark.parametrize("current", ["garbage", "", None, 42, "   "])
    def test_other_formats_use_dotted_defaults(self, current):
        assert next_revision(current, "minor") == "1.1"
        assert next_revision(current, "major") == "2.0"

    def test_unknown_kind_is_minor(self):
        assert next_revision("1.0", "sideways") == "1.1"


class TestKindForAction:
    def test_draft_is_minor(self):
        assert revision_kind_for_action(RevisionAction.draft) == RevisionKind.minor

    @pytest.mark.parametrize("action", ["update", "send"])
    def test_update_and_send_are_major(self, action):
        assert revision_kind_for_action(action) == RevisionKind.major
