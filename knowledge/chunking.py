# knowledge/chunking.py
from __future__ import annotations

from typing import List


def split_into_chunks(text: str, size: int, overlap: int) -> List[str]:
    """
    Fixed-size character windows, each starting `size - overlap` after the previous one.
    Chunks are stripped; empty ones are dropped.
    """
    if size <= 0:
        raise ValueError("chunk size must be positive")
    if not 0 <= overlap < size:
        raise ValueError("overlap must be in [0, size)")

    text = text or ""
    step = size - overlap
    out: List[str] = []
    start = 0
    while start < len(text):
        end = min(len(text), start + size)
        out.append(text[start:end].strip())
        if end == len(text):
            break
        start += step
    return [c for c in out if c]
