from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HeightWindow:
    """Inclusive range of chain heights processed as one unit of cursor advancement."""

    start_height: int
    end_height: int

    def validate(self) -> None:
        if self.start_height < 0 or self.end_height < 0:
            raise ValueError("Heights must be non-negative")
        if self.start_height > self.end_height:
            raise ValueError("start_height must be <= end_height")

    @property
    def size(self) -> int:
        return self.end_height - self.start_height + 1

    @classmethod
    def next_after(cls, *, cursor: int, latest: int, window_size: int) -> HeightWindow:
        """
        Window following `cursor`: [cursor + 1, min(cursor + window_size, latest)].

        Never spans more than window_size heights and never ends past `latest`.
        """
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        if cursor >= latest:
            raise ValueError(f"Nothing to index: cursor={cursor} latest={latest}")

        window = cls(start_height=cursor + 1, end_height=min(cursor + window_size, latest))
        window.validate()
        return window
