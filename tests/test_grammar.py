"""
Tests for the control-file command grammar.
"""

import pytest

from cmd_watcher.grammar import (
    AppendToFile,
    CreateFile,
    DeleteFile,
    RenameFile,
    describe,
    parse,
)


class TestParse:
    """Test cases for grammar.parse."""

    def test_create(self):
        assert parse("create a file foo.txt") == CreateFile("foo.txt")

    def test_delete(self):
        assert parse("delete the file foo.txt") == DeleteFile("foo.txt")

    def test_rename(self):
        assert parse("rename the file a.txt to b.txt") == RenameFile("a.txt", "b.txt")

    def test_rename_splits_on_first_separator(self):
        """Only the first ' to ' separates the old path from the new one."""
        assert parse("rename the file a.txt to b to c.txt") == RenameFile("a.txt", "b to c.txt")

    def test_add_to_file(self):
        assert parse("add to the file a.txt this content: hello world") == AppendToFile(
            "a.txt", "hello world"
        )

    def test_add_to_file_path_uses_its_own_prefix(self):
        """The path starts right after 'add to the file ', not at another prefix's length."""
        command = parse("add to the file notes/today.md this content: x")
        assert command == AppendToFile("notes/today.md", "x")

    def test_add_to_file_empty_content(self):
        assert parse("add to the file a.txt this content: ") == AppendToFile("a.txt", "")

    def test_bytes_are_decoded(self):
        assert parse("create a file été.txt".encode("utf-8")) == CreateFile("été.txt")

    def test_trailing_newline_is_not_part_of_path(self):
        assert parse(b"delete the file tmp.txt\n") == DeleteFile("tmp.txt")
        assert parse("create a file x.txt\r\n") == CreateFile("x.txt")

    def test_path_ends_at_line_break(self):
        assert parse("create a file a.txt\ndelete the file b.txt") == CreateFile("a.txt")

    def test_add_to_file_keeps_multiline_content(self):
        """Appended content runs to the end of the text, not the end of the first line."""
        command = parse(b"add to the file a.txt this content: line one\nline two\n")
        assert command == AppendToFile("a.txt", "line one\nline two")

    def test_add_to_file_keeps_unicode_line_separators(self):
        command = parse("add to the file a.txt this content: a\u2028b\x0cc")
        assert command == AppendToFile("a.txt", "a\u2028b\x0cc")

    def test_add_to_file_path_cannot_span_lines(self):
        assert parse("add to the file a.txt\nb.txt this content: x") is None

    def test_leading_bom_is_ignored(self):
        assert parse(b"\xef\xbb\xbfcreate a file foo.txt") == CreateFile("foo.txt")

    @pytest.mark.parametrize(
        "text",
        [
            "not a command",
            "",
            "Create a file foo.txt",
            "create a file ",
            "rename the file a.txt",
            "add to the file a.txt",
            "please create a file foo.txt",
        ],
    )
    def test_unrecognised_returns_none(self, text):
        assert parse(text) is None

    def test_invalid_utf8_returns_none(self, caplog):
        caplog.set_level("WARNING")
        assert parse(b"create a file \xff\xfe.txt") is None
        assert "not valid UTF-8" in caplog.text

    def test_empty_bytes(self):
        assert parse(b"") is None


class TestDescribe:
    """Test cases for grammar.describe."""

    def test_describe_each_command(self):
        assert describe(CreateFile("a")) == "create a"
        assert describe(DeleteFile("a")) == "delete a"
        assert describe(RenameFile("a", "b")) == "rename a -> b"
        assert describe(AppendToFile("a", "xyz")) == "append 3 chars to a"
