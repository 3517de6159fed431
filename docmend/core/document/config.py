from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_DEPTH: int = 100
# Each tree level costs about three interpreter frames in the normalizer.
MAX_DEPTH_LIMIT: int = 200


@dataclass(frozen=True, slots=True)
class NormalizerConfig:
    """Settings shared by the normalizer and the linkifier.

    max_depth bounds how deep the walkers descend. Subtrees below it are
    dropped by the normalizer (the parent's fallback content applies) and
    left untouched by the linkifier. It must lie in 1..MAX_DEPTH_LIMIT.

    Security notes:
    - Input trees are attacker-controlled; without a bound, deep nesting
      turns into RecursionError instead of a repaired document.

    """

    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise TypeError("max_depth must be an int")
        if not 1 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}")

    @staticmethod
    def from_env() -> "NormalizerConfig":
        """Create a config from environment variables.

        - DOCMEND_MAX_DEPTH (default 100, capped at MAX_DEPTH_LIMIT)

        Invalid or non-positive values fall back to the default.
        """

        raw = os.environ.get("DOCMEND_MAX_DEPTH", "").strip()
        try:
            depth = int(raw) if raw else DEFAULT_MAX_DEPTH
        except ValueError:
            depth = DEFAULT_MAX_DEPTH
        if depth < 1:
            depth = DEFAULT_MAX_DEPTH
        return NormalizerConfig(max_depth=min(depth, MAX_DEPTH_LIMIT))
