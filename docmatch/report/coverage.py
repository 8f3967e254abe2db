# docmatch/report/coverage.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from docmatch.match.models import Chunk, ChunkMatch


# ==================================================
# Section model (ใช้ downstream: ranking / report / frontend)
# ==================================================
@dataclass
class MatchedSection:
    """
    ช่วงต่อเนื่องของ chunk ใน A ที่ถูก match (เรียงตาม chunk index ของ A)
    """
    start_index: int
    end_index: int
    pages_a: tuple                  # (first_page, last_page)
    pages_b: tuple
    chunk_count: int
    mean_score: float

    @property
    def section_label(self) -> str:
        first, last = self.pages_a
        return f"page {first}" if first == last else f"pages {first}-{last}"


@dataclass
class CoverageReport:
    coverage_a: float = 0.0         # % ของตัวอักษรใน A ที่ถูก match
    coverage_b: float = 0.0
    mean_score: float = 0.0
    match_count: int = 0
    sections: List[MatchedSection] = field(default_factory=list)

    @property
    def overall(self) -> float:
        return min(self.coverage_a, self.coverage_b)


# ==================================================
# Coverage Scorer
# ==================================================
class CoverageScorer:
    """
    แปลง list ของ ChunkMatch → coverage + sections

    หลักการ:
    - ❗ ไม่ match ใหม่ ใช้ผลจาก MatchResolver ตรง ๆ
    - นับ chunk ละครั้งเดียว (ใช้ set ของ id) แม้จะมี many-to-one
    """

    def score(
        self,
        matches: Optional[List[ChunkMatch]],
        chunks_a: List[Chunk],
        chunks_b: List[Chunk],
    ) -> CoverageReport:

        if not matches:
            return CoverageReport()

        return CoverageReport(
            coverage_a=self._coverage(chunks_a, {m.chunk_a.id for m in matches}),
            coverage_b=self._coverage(chunks_b, {m.chunk_b.id for m in matches}),
            mean_score=sum(m.score for m in matches) / len(matches),
            match_count=len(matches),
            sections=self.build_sections(matches),
        )

    def _coverage(self, chunks: List[Chunk], matched_ids: set) -> float:
        total = sum(c.character_count for c in chunks)
        if total <= 0:
            return 0.0

        matched = sum(c.character_count for c in chunks if c.id in matched_ids)
        return round(100.0 * matched / total, 2)

    # --------------------------------------------------
    # Group matches into contiguous A-index runs
    # --------------------------------------------------
    def build_sections(self, matches: List[ChunkMatch]) -> List[MatchedSection]:
        by_index: Dict[int, List[ChunkMatch]] = {}
        for m in matches:
            by_index.setdefault(m.chunk_a.index, []).append(m)

        sections: List[MatchedSection] = []
        run: List[int] = []

        for idx in sorted(by_index):
            if run and idx != run[-1] + 1:
                sections.append(self._section(run, by_index))
                run = []
            run.append(idx)

        if run:
            sections.append(self._section(run, by_index))

        return sections

    def _section(self, run: List[int], by_index: Dict[int, List[ChunkMatch]]) -> MatchedSection:
        grouped = [m for idx in run for m in by_index[idx]]

        pages_a = [m.chunk_a.page_number for m in grouped]
        pages_b = [m.chunk_b.page_number for m in grouped]

        return MatchedSection(
            start_index=run[0],
            end_index=run[-1],
            pages_a=(min(pages_a), max(pages_a)),
            pages_b=(min(pages_b), max(pages_b)),
            chunk_count=len(run),
            mean_score=sum(m.score for m in grouped) / len(grouped),
        )
