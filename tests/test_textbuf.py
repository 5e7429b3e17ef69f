import itertools

import pytest

from secftpd import textbuf


def test_split_text_first_occurrence():
    lhs, rhs = textbuf.split_text("a=b=c", "=")
    assert lhs == "a"
    assert rhs == "b=c"


def test_split_text_reverse_last_occurrence():
    lhs, rhs = textbuf.split_text_reverse("a=b=c", "=")
    assert lhs == "a=b"
    assert rhs == "c"


@pytest.mark.parametrize("value", ["USER anonymous", "x  y", " lead", "trail "])
def test_split_round_trip(value):
    lhs, rhs = textbuf.split_text(value, " ")
    assert lhs + " " + rhs == value
    lhs, rhs = textbuf.split_text_reverse(value, " ")
    assert lhs + " " + rhs == value


def test_split_not_found_keeps_value():
    assert textbuf.split_text("nosep", ",") == ("nosep", "")
    assert textbuf.split_text_reverse("nosep", ",") == ("nosep", "")


def test_split_empty_separator_is_not_found():
    assert textbuf.split_text("abc", "") == ("abc", "")


def test_locate_text():
    assert textbuf.locate_text("hello world", "o") == 4
    assert textbuf.locate_text_reverse("hello world", "o") == 7
    assert textbuf.locate_text("abc", "abcd") is None
    assert textbuf.locate_text("abc", "") is None
    assert textbuf.locate_text_reverse("abc", "") is None


def test_locate_text_reverse_at_start():
    assert textbuf.locate_text_reverse("abc", "abc") == 0


def test_locate_chars():
    assert textbuf.locate_chars("path/to\\file", "\\/") == (4, "/")
    assert textbuf.locate_chars("plain", "*?") is None


def test_replace_text_matches_builtin():
    for value in ["a,b,c", ",", "a,,b,", "", "no commas"]:
        assert textbuf.replace_text(value, ",", "--") == value.replace(",", "--")


def test_replace_text_empty_old_unchanged():
    assert textbuf.replace_text("abc", "", "X") == "abc"


def test_compare_ordering():
    assert textbuf.compare("abc", "abc") == 0
    assert textbuf.compare("abc", "abd") < 0
    assert textbuf.compare("abd", "abc") > 0
    assert textbuf.compare("ab", "abc") < 0
    assert textbuf.compare("abc", "ab") > 0


def test_compare_sign_agrees_with_python_ordering():
    words = ["b", "a", "ab", "", "ba", "B"]
    for first, second in itertools.product(words, repeat=2):
        result = textbuf.compare(first, second)
        assert (result < 0) == (first < second)
        assert (result > 0) == (first > second)
        assert (result == 0) == (first == second)


def test_padding():
    assert textbuf.rpad("ab", 5) == "ab   "
    assert textbuf.lpad("ab", 5) == "   ab"
    assert textbuf.rpad("abcdef", 3) == "abcdef"
    assert textbuf.lpad("abcdef", 3) == "abcdef"


def test_space_checks():
    assert textbuf.contains_space("a b")
    assert textbuf.contains_space("a\tb")
    assert not textbuf.contains_space("ab")
    assert textbuf.all_space(" \t\r\n")
    assert textbuf.all_space("")
    assert not textbuf.all_space(" a ")


def test_unprintable():
    assert textbuf.contains_unprintable("bad\x01name")
    assert textbuf.contains_unprintable("del\x7f")
    assert not textbuf.contains_unprintable("good name")
    cleaned = textbuf.replace_unprintable("a\x00b\nc", "?")
    assert cleaned == "a?b?c"
    assert not textbuf.contains_unprintable(cleaned)


def test_iter_lines():
    assert list(textbuf.iter_lines("a\n\nb")) == ["a", "", "b"]
    assert list(textbuf.iter_lines("a\nb\n")) == ["a", "b"]
    assert list(textbuf.iter_lines("")) == []
    assert list(textbuf.iter_lines("\n")) == [""]


def test_contains_line():
    text = "root\nftp\nnobody"
    assert textbuf.contains_line(text, "ftp")
    assert textbuf.contains_line(text, "nobody")
    assert not textbuf.contains_line(text, "ft")
    assert not textbuf.contains_line("", "")


def test_alloc_alt_term():
    assert textbuf.alloc_alt_term("key=value", "=") == "key"
    with pytest.raises(ValueError):
        textbuf.alloc_alt_term("novalue", "=")


def test_left_right_mid():
    value = "abcdef"
    assert textbuf.left(value, 2) == "ab"
    assert textbuf.right(value, 2) == "ef"
    assert textbuf.mid_to_end(value, 2) == "cdef"
    assert textbuf.mid_to_end(value, len(value)) == ""
    assert textbuf.left(value, 3) + textbuf.mid_to_end(value, 3) == value


@pytest.mark.parametrize(
    "func, arg",
    [
        (textbuf.left, 7),
        (textbuf.right, 7),
        (textbuf.mid_to_end, 7),
        (textbuf.left, -1),
    ],
)
def test_out_of_range(func, arg):
    with pytest.raises(ValueError):
        func("abcdef", arg)


def test_char_at():
    assert textbuf.char_at("xyz", 1) == "y"
    with pytest.raises(IndexError):
        textbuf.char_at("xyz", 3)
    with pytest.raises(IndexError):
        textbuf.char_at("", 0)