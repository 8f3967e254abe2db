# docmatch/match/evidence.py

import math
from dataclasses import dataclass
from typing import List

from docmatch.match.models import Chunk, ChunkMatch
from docmatch.match.options import MIN_EVIDENCE_CHARACTERS, MIN_EVIDENCE_RATIO


def required_characters(
    total_chars_a: int,
    total_chars_b: int,
    min_characters: int = MIN_EVIDENCE_CHARACTERS,
    min_ratio: float = MIN_EVIDENCE_RATIO,
) -> int:
    """max(floor แบบตายตัว, ratio ของเอกสารที่สั้นกว่า)"""
    return max(min_characters, math.ceil(min_ratio * min(total_chars_a, total_chars_b)))


def has_sufficient_evidence(
    matched_characters: int,
    total_chars_a: int,
    total_chars_b: int,
    min_characters: int = MIN_EVIDENCE_CHARACTERS,
    min_ratio: float = MIN_EVIDENCE_RATIO,
) -> bool:
    return matched_characters >= required_characters(
        total_chars_a, total_chars_b, min_characters, min_ratio
    )


@dataclass(frozen=True)
class Evidence:
    """ตัวเลข evidence ของการเปรียบเทียบ 1 คู่เอกสาร"""
    total_chars_a: int
    total_chars_b: int
    matched_chars_a: int
    matched_chars_b: int

    @property
    def matched_characters(self) -> int:
        # ใช้ค่าที่น้อยกว่า (conservative)
        return min(self.matched_chars_a, self.matched_chars_b)

    @classmethod
    def collect(
        cls,
        chunks_a: List[Chunk],
        chunks_b: List[Chunk],
        matches: List[ChunkMatch],
    ) -> "Evidence":
        return cls(
            total_chars_a=sum(c.character_count for c in chunks_a),
            total_chars_b=sum(c.character_count for c in chunks_b),
            matched_chars_a=sum(m.chunk_a.character_count for m in matches),
            matched_chars_b=sum(m.chunk_b.character_count for m in matches),
        )
