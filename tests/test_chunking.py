import pytest

from knowledge.chunking import split_into_chunks


def test_windows_step_by_size_minus_overlap():
    text = "abcdefghij" * 3  # 30 chars
    chunks = split_into_chunks(text, size=12, overlap=2)
    assert chunks[0] == text[0:12]
    assert chunks[1] == text[10:22]
    assert chunks[2] == text[20:30]
    assert len(chunks) == 3


def test_short_text_is_one_chunk():
    assert split_into_chunks("  hello  ", size=1200, overlap=200) == ["hello"]


def test_whitespace_only_windows_are_dropped():
    text = "a" * 10 + " " * 20
    assert split_into_chunks(text, size=10, overlap=0) == ["a" * 10]


def test_empty_text_has_no_chunks():
    assert split_into_chunks("", size=100, overlap=10) == []


@pytest.mark.parametrize("size,overlap", [(0, 0), (10, 10), (10, -1)])
def test_invalid_parameters(size, overlap):
    with pytest.raises(ValueError):
        split_into_chunks("text", size=size, overlap=overlap)


def _window_spans(length, size, overlap):
    spans, start = [], 0
    while start < length:
        end = min(length, start + size)
        spans.append((start, end))
        if end == length:
            break
        start += size - overlap
    return spans


TEXTS = [
    "Vacation rules.\n\nSummer  vacation is agreed with your supervisor.\tHoliday pay follows PAM.",
    "a b  c   d " * 7,
    "x" * 50 + "   \n\t  " + "y" * 33,
    "  leading and trailing  ",
    "Отпуск согласуется с руководителем. Loma sovitaan esimiehen kanssa.",
]


@pytest.mark.parametrize("size,overlap", [(5, 0), (7, 3), (10, 9), (16, 4), (1200, 200)])
@pytest.mark.parametrize("text", TEXTS)
def test_windows_are_stable_and_leave_no_gaps(text, size, overlap):
    chunks = split_into_chunks(text, size=size, overlap=overlap)

    assert chunks == split_into_chunks(text, size=size, overlap=overlap)
    assert chunks
    assert all(c and c == c.strip() and len(c) <= size for c in chunks)

    spans = _window_spans(len(text), size, overlap)
    assert chunks == [text[s:e].strip() for s, e in spans if text[s:e].strip()]
    for i, ch in enumerate(text):
        if not ch.isspace():
            assert any(s <= i < e for s, e in spans), f"char {i} not covered"
