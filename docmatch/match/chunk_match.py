# docmatch/match/chunk_match.py

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from docmatch.match.models import Chunk, ChunkMatch
from docmatch.match.options import MatchingOptions, TIE_EPSILON, resolve_options
from docmatch.match.similarity import similarity_matrix, token_jaccard, tokenize, validate_dimensions

logger = logging.getLogger(__name__)


@dataclass
class FilterStats:
    inspected: int = 0
    cosine_passed: int = 0
    jaccard_filtered: int = 0
    matches: int = 0
    early_exit: bool = False

    @property
    def filter_rate(self) -> float:
        if self.cosine_passed == 0:
            return 0.0
        return self.jaccard_filtered / self.cosine_passed


@dataclass
class _Candidate:
    target: Chunk
    score: float
    jaccard_score: Optional[float]


class ChunkMatcher:
    """
    Directional best-match finder (source → target)

    Filter 2 ชั้น:
    1. cosine >= primary_threshold
    2. jaccard >= jaccard_threshold (เฉพาะเมื่อเปิด และทั้งสอง chunk มี text)

    Tie-break:
    1. cosine สูงกว่า
    2. score ต่างกัน < TIE_EPSILON → หน้าที่ใกล้ source มากกว่า

    NMS ฝั่ง source เท่านั้น: 1 source chunk ได้คู่ไม่เกิน 1 target
    (target เดียวกันถูกเลือกซ้ำจากหลาย source ได้)
    """

    def __init__(self, options: Optional[MatchingOptions] = None):
        self.options = resolve_options(options)

    # ------------------------------------------------------
    # Public API
    # ------------------------------------------------------
    def find_best_matches(
        self,
        source_chunks: List[Chunk],
        target_chunks: List[Chunk],
    ) -> Dict[str, ChunkMatch]:
        matches, _ = self.find_best_matches_with_stats(source_chunks, target_chunks)
        return matches

    def find_best_matches_with_stats(
        self,
        source_chunks: List[Chunk],
        target_chunks: List[Chunk],
    ) -> Tuple[Dict[str, ChunkMatch], FilterStats]:

        opts = self.options
        stats = FilterStats()
        matches: Dict[str, ChunkMatch] = {}

        if not source_chunks or not target_chunks:
            return matches, stats

        validate_dimensions(source_chunks, target_chunks)

        sims = similarity_matrix(
            [c.embedding for c in source_chunks],
            [c.embedding for c in target_chunks],
        )

        # token set ของ target คำนวณครั้งเดียวต่อ pass
        target_tokens: Dict[int, Set[str]] = {}

        early_window = min(opts.early_exit_window, len(source_chunks))
        sources_with_hits = 0

        for i, source in enumerate(source_chunks):
            stats.inspected += 1

            candidates = self._collect_candidates(
                source, target_chunks, sims[i], target_tokens, stats
            )

            if not candidates:
                # ----------------------------------------------
                # Early exit: chunk ช่วงแรกไม่มีคู่เลย → ข้ามที่เหลือ
                # ----------------------------------------------
                if early_window and sources_with_hits == 0 and i == early_window - 1:
                    stats.early_exit = True
                    logger.warning(
                        "Early exit: no matches found in initial chunk sample "
                        "(inspected_chunks=%d)",
                        early_window,
                    )
                    break
                continue

            sources_with_hits += 1
            best = self._pick_best(source, candidates)

            matches[source.id] = ChunkMatch(
                chunk_a=source.ref(),
                chunk_b=best.target.ref(),
                score=best.score,
                jaccard_score=best.jaccard_score,
            )

        stats.matches = len(matches)

        if opts.jaccard_enabled and stats.jaccard_filtered > 0:
            logger.info(
                "Jaccard similarity filtering applied: cosine_threshold=%.3f "
                "jaccard_threshold=%.3f cosine_passed=%d jaccard_filtered=%d "
                "final_matches=%d filter_rate=%.1f%%",
                opts.primary_threshold,
                opts.jaccard_threshold,
                stats.cosine_passed,
                stats.jaccard_filtered,
                stats.matches,
                stats.filter_rate * 100,
            )

        return matches, stats

    # ------------------------------------------------------
    # Helper Functions
    # ------------------------------------------------------
    def _collect_candidates(
        self,
        source: Chunk,
        target_chunks: List[Chunk],
        scores: np.ndarray,
        target_tokens: Dict[int, Set[str]],
        stats: FilterStats,
    ) -> List[_Candidate]:

        opts = self.options
        candidates: List[_Candidate] = []
        source_tokens: Optional[Set[str]] = None

        # ลำดับ target คงเดิม (tie-break ขึ้นกับลำดับนี้)
        for j in np.flatnonzero(scores >= opts.primary_threshold).tolist():
            target = target_chunks[j]
            score = float(scores[j])
            stats.cosine_passed += 1

            if opts.jaccard_enabled and source.text and target.text:
                if source_tokens is None:
                    source_tokens = tokenize(source.text)
                if j not in target_tokens:
                    target_tokens[j] = tokenize(target.text)

                jaccard = token_jaccard(source_tokens, target_tokens[j])
                if jaccard < opts.jaccard_threshold:
                    # paraphrase → ตัดทิ้ง
                    stats.jaccard_filtered += 1
                    continue

                candidates.append(_Candidate(target, score, jaccard))
            else:
                candidates.append(_Candidate(target, score, None))

        return candidates

    def _pick_best(self, source: Chunk, candidates: List[_Candidate]) -> _Candidate:
        best = candidates[0]

        for curr in candidates[1:]:
            if abs(curr.score - best.score) < TIE_EPSILON:
                dist_best = abs(source.page_number - best.target.page_number)
                dist_curr = abs(source.page_number - curr.target.page_number)
                if dist_curr < dist_best:
                    best = curr
            elif curr.score > best.score:
                best = curr

        return best


def find_best_matches(
    source_chunks: List[Chunk],
    target_chunks: List[Chunk],
    options: Optional[MatchingOptions] = None,
) -> Dict[str, ChunkMatch]:
    return ChunkMatcher(options).find_best_matches(source_chunks, target_chunks)
