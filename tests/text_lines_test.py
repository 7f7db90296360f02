"""Tests for the line splitter."""

import pytest

from karalis.errors import EmptyInputError
from karalis.loaders.text_lines import decode_text, iter_line_text, split_lines


class TestSplitLines:

    def test_mixed_line_endings(self):
        assert split_lines("a\nb\r\nc\rd") == [(0, 1), (2, 1), (5, 1), (7, 1)]

    def test_trailing_terminator_adds_no_line(self):
        assert split_lines("a\n") == [(0, 1)]

    def test_unterminated_last_line(self):
        assert split_lines(b"v 1 2 3\nf 1 2 3") == [(0, 7), (8, 7)]

    def test_blank_lines_are_kept(self):
        assert split_lines("\n\n") == [(0, 0), (1, 0)]

    def test_nul_ends_a_line(self):
        assert split_lines(b"x\x00y") == [(0, 1), (2, 1)]

    def test_crlf_is_one_terminator(self):
        spans = split_lines(b"a\r\n\r\nb")
        assert spans == [(0, 1), (3, 0), (5, 1)]

    def test_empty_buffer_raises(self):
        with pytest.raises(EmptyInputError):
            split_lines("")
        with pytest.raises(EmptyInputError):
            split_lines(b"")


def test_iter_line_text_decodes_bytes():
    assert list(iter_line_text(b"v 1\r\nv 2")) == ["v 1", "v 2"]


def test_decode_text_drops_invalid_bytes():
    assert decode_text(b"ab\xffc") == "abc"
    assert decode_text("already text") == "already text"
