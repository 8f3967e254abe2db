# docmatch/match/match_resolver.py

import asyncio
import logging
from typing import Dict, List, Optional, Union

from docmatch.match.chunk_match import ChunkMatcher
from docmatch.match.evidence import Evidence, has_sufficient_evidence, required_characters
from docmatch.match.models import Chunk, ChunkMatch
from docmatch.match.options import MatchingOptions, resolve_options
from docmatch.match.similarity import validate_dimensions

logger = logging.getLogger(__name__)


def merge_bidirectional_matches(
    matches_a_to_b: Dict[str, ChunkMatch],
    matches_b_to_a: Dict[str, ChunkMatch],
) -> List[ChunkMatch]:
    """
    รวมผลสองทิศทางเป็น list เดียว (orientation A/B)

    - B→A ถูกสลับ chunk_a/chunk_b ให้ chunk_a มาจากเอกสาร A เสมอ
    - ไม่บังคับ 1:1 ระดับ global (many-to-one ได้ทั้งสองฝั่ง)
    - ตัดเฉพาะคู่ (chunk_a.id, chunk_b.id) ที่ซ้ำกันจริง ๆ
    """
    pairs: List[ChunkMatch] = list(matches_a_to_b.values())
    pairs.extend(m.swapped() for m in matches_b_to_a.values())

    return dedupe_pairs(pairs)


def dedupe_pairs(pairs: List[ChunkMatch]) -> List[ChunkMatch]:
    # sorted() เป็น stable sort → ผลลัพธ์ deterministic เมื่อ score เท่ากัน
    ordered = sorted(pairs, key=lambda m: m.score, reverse=True)

    seen = set()
    result: List[ChunkMatch] = []

    for match in ordered:
        key = match.pair_key
        if key in seen:
            continue
        seen.add(key)
        result.append(match)

    return result


class MatchResolver:
    """
    Bidirectional matcher:
    A→B + B→A → merge / dedup → evidence gate

    คืน None เมื่อ evidence ไม่พอ (ไม่ใช่ error และไม่ใช่ list ว่าง)
    """

    def __init__(self, options: Union[MatchingOptions, float, None] = None):
        self.options = resolve_options(options)
        self.chunk_matcher = ChunkMatcher(self.options)

    # ------------------------------------------------------
    # Async (สองทิศทางรันพร้อมกัน)
    # ------------------------------------------------------
    async def match(
        self,
        chunks_a: List[Chunk],
        chunks_b: List[Chunk],
    ) -> Optional[List[ChunkMatch]]:

        validate_dimensions(chunks_a, chunks_b)

        loop = asyncio.get_running_loop()
        matches_a_to_b, matches_b_to_a = await asyncio.gather(
            loop.run_in_executor(None, self.chunk_matcher.find_best_matches, chunks_a, chunks_b),
            loop.run_in_executor(None, self.chunk_matcher.find_best_matches, chunks_b, chunks_a),
        )

        return self._resolve(chunks_a, chunks_b, matches_a_to_b, matches_b_to_a)

    # ------------------------------------------------------
    # Sync (สำหรับ caller ที่ไม่มี event loop)
    # ------------------------------------------------------
    def match_sync(
        self,
        chunks_a: List[Chunk],
        chunks_b: List[Chunk],
    ) -> Optional[List[ChunkMatch]]:

        validate_dimensions(chunks_a, chunks_b)

        matches_a_to_b = self.chunk_matcher.find_best_matches(chunks_a, chunks_b)
        matches_b_to_a = self.chunk_matcher.find_best_matches(chunks_b, chunks_a)

        return self._resolve(chunks_a, chunks_b, matches_a_to_b, matches_b_to_a)

    # ------------------------------------------------------
    # Merge + evidence gate
    # ------------------------------------------------------
    def _resolve(
        self,
        chunks_a: List[Chunk],
        chunks_b: List[Chunk],
        matches_a_to_b: Dict[str, ChunkMatch],
        matches_b_to_a: Dict[str, ChunkMatch],
    ) -> Optional[List[ChunkMatch]]:

        all_matches = merge_bidirectional_matches(matches_a_to_b, matches_b_to_a)
        evidence = Evidence.collect(chunks_a, chunks_b, all_matches)

        sufficient = has_sufficient_evidence(
            evidence.matched_characters,
            evidence.total_chars_a,
            evidence.total_chars_b,
            self.options.min_evidence_characters,
            self.options.min_evidence_ratio,
        )

        if not sufficient:
            logger.warning(
                "Insufficient evidence for similarity match: match_count=%d "
                "matched_characters=%d total_characters_a=%d total_characters_b=%d "
                "required_characters=%d",
                len(all_matches),
                evidence.matched_characters,
                evidence.total_chars_a,
                evidence.total_chars_b,
                required_characters(
                    evidence.total_chars_a,
                    evidence.total_chars_b,
                    self.options.min_evidence_characters,
                    self.options.min_evidence_ratio,
                ),
            )
            return None

        logger.debug(
            "Bidirectional match accepted: a_to_b=%d b_to_a=%d merged=%d matched_characters=%d",
            len(matches_a_to_b),
            len(matches_b_to_a),
            len(all_matches),
            evidence.matched_characters,
        )
        return all_matches


async def find_bidirectional_matches(
    chunks_a: List[Chunk],
    chunks_b: List[Chunk],
    options: Union[MatchingOptions, float, None] = None,
) -> Optional[List[ChunkMatch]]:
    return await MatchResolver(options).match(chunks_a, chunks_b)
