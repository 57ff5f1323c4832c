from __future__ import annotations

import sys
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.batch_result import FileOutcome, FileResult

"""tqdm progress bar for ``order-intake validate``.

One tick per file; the postfix shows the approved / rejected / failed tally
so far. The tally is kept even when no bar is shown (non-TTY stdout, empty
batch) because validate_files reads its counts from it.
"""

__all__ = [
    "BatchProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class BatchProgress:
    """Progress and outcome tally over the files of one validation run."""

    def __init__(self, files: Sequence[Path], *, label: str = "Validating orders") -> None:
        self.files = list(files)
        self.label = label
        self.done = 0
        self.tally: Counter[FileOutcome] = Counter()
        self.bar: TqdmType[Any] | None = None
        if self.files and is_tty_enabled():
            self.bar = tqdm(
                total=len(self.files),
                desc=label,
                unit="file",
                leave=True,
                ncols=80,
                ascii=True,
            )

    @property
    def enabled(self) -> bool:
        return self.bar is not None

    def begin(self, path: Path) -> None:
        if self.bar is not None:
            self.bar.set_description(f"{self.label} ({path.name})")

    def record(self, result: FileResult) -> None:
        self.done += 1
        self.tally[result.outcome] += 1
        if self.bar is not None:
            self.bar.update(1)
            self.bar.set_postfix({o.value: self.tally[o] for o in FileOutcome})
            self.bar.set_description(self.label)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def __enter__(self) -> BatchProgress:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
