# docmatch/match/options.py

import os
from dataclasses import dataclass
from typing import Optional, Union

from dotenv import load_dotenv

from docmatch.match.errors import InvalidOptionsError


# ==================================================
# Defaults
# ==================================================
DEFAULT_PRIMARY_THRESHOLD = 0.90
DEFAULT_JACCARD_THRESHOLD = 0.60

MIN_EVIDENCE_CHARACTERS = 1600
MIN_EVIDENCE_RATIO = 0.05

# จำนวน source chunk แรกที่ใช้ตัดสิน early exit
EARLY_EXIT_WINDOW = 40

# score ต่างกันน้อยกว่านี้ = เสมอกัน → ใช้ระยะหน้าตัดสิน
TIE_EPSILON = 0.001


@dataclass(frozen=True)
class MatchingOptions:
    """
    Config ต่อ 1 การเปรียบเทียบ (ไม่ใช่ global state)

    - primary_threshold : cosine cutoff
    - jaccard_threshold : lexical cutoff (0 = ปิด lexical filter)
    - min_evidence_characters / min_evidence_ratio : evidence gate
    - early_exit_window : 0 = ไม่ใช้ early exit
    """

    primary_threshold: float = DEFAULT_PRIMARY_THRESHOLD
    jaccard_threshold: float = DEFAULT_JACCARD_THRESHOLD
    min_evidence_characters: int = MIN_EVIDENCE_CHARACTERS
    min_evidence_ratio: float = MIN_EVIDENCE_RATIO
    early_exit_window: int = EARLY_EXIT_WINDOW

    def __post_init__(self):
        if not -1.0 <= self.primary_threshold <= 1.0:
            raise InvalidOptionsError(
                f"primary_threshold must be within [-1, 1], got {self.primary_threshold}"
            )
        if not 0.0 <= self.jaccard_threshold <= 1.0:
            raise InvalidOptionsError(
                f"jaccard_threshold must be within [0, 1], got {self.jaccard_threshold}"
            )
        if self.min_evidence_characters < 0:
            raise InvalidOptionsError(
                f"min_evidence_characters must be >= 0, got {self.min_evidence_characters}"
            )
        if not 0.0 <= self.min_evidence_ratio <= 1.0:
            raise InvalidOptionsError(
                f"min_evidence_ratio must be within [0, 1], got {self.min_evidence_ratio}"
            )
        if self.early_exit_window < 0:
            raise InvalidOptionsError(
                f"early_exit_window must be >= 0, got {self.early_exit_window}"
            )

    @property
    def jaccard_enabled(self) -> bool:
        return self.jaccard_threshold > 0

    @classmethod
    def from_env(cls) -> "MatchingOptions":
        load_dotenv()

        return cls(
            primary_threshold=float(
                os.getenv("DOCMATCH_PRIMARY_THRESHOLD", DEFAULT_PRIMARY_THRESHOLD)
            ),
            jaccard_threshold=float(
                os.getenv("DOCMATCH_JACCARD_THRESHOLD", DEFAULT_JACCARD_THRESHOLD)
            ),
            min_evidence_characters=int(
                os.getenv("DOCMATCH_MIN_EVIDENCE_CHARS", MIN_EVIDENCE_CHARACTERS)
            ),
            min_evidence_ratio=float(
                os.getenv("DOCMATCH_MIN_EVIDENCE_RATIO", MIN_EVIDENCE_RATIO)
            ),
            early_exit_window=int(
                os.getenv("DOCMATCH_EARLY_EXIT_WINDOW", EARLY_EXIT_WINDOW)
            ),
        )


def resolve_options(
    options: Union[MatchingOptions, float, None] = None,
) -> MatchingOptions:
    """
    Resolve caller input once at the entry point.
    None reads DOCMATCH_* from the environment (defaults when unset),
    a bare float is taken as the cosine threshold.
    """
    if options is None:
        return MatchingOptions.from_env()
    if isinstance(options, MatchingOptions):
        return options
    if isinstance(options, (int, float)) and not isinstance(options, bool):
        return MatchingOptions(primary_threshold=float(options))
    raise InvalidOptionsError(f"Unsupported options type: {type(options).__name__}")


def batch_parallel_limit() -> Optional[int]:
    load_dotenv()
    raw = os.getenv("DOCMATCH_BATCH_PARALLEL_LIMIT")
    if not raw:
        return None

    limit = int(raw)
    if limit <= 0:
        raise InvalidOptionsError(
            f"DOCMATCH_BATCH_PARALLEL_LIMIT must be > 0, got {limit}"
        )
    return limit
