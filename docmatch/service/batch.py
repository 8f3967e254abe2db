# docmatch/service/batch.py

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from docmatch.match.match_resolver import MatchResolver
from docmatch.match.models import ChunkMatch, DocumentChunks
from docmatch.match.options import MatchingOptions, batch_parallel_limit

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


@dataclass
class BatchReport:
    """
    ผลของ batch แยกเป็น 3 กลุ่มชัดเจน:
    - matches      : source_id → target_id → list ของ ChunkMatch
    - insufficient : คู่ที่ evidence ไม่พอ (ได้ None)
    - failures     : คู่ที่ error (เช่น embedding dimension ไม่ตรง)
    """
    matches: Dict[str, Dict[str, List[ChunkMatch]]] = field(default_factory=dict)
    insufficient: List[PairKey] = field(default_factory=list)
    failures: Dict[PairKey, BaseException] = field(default_factory=dict)

    @property
    def pair_count(self) -> int:
        matched = sum(len(targets) for targets in self.matches.values())
        return matched + len(self.insufficient) + len(self.failures)


async def _match_pair(
    resolver: MatchResolver,
    source: DocumentChunks,
    target: DocumentChunks,
    semaphore: Optional[asyncio.Semaphore],
) -> Optional[List[ChunkMatch]]:
    if semaphore is None:
        return await resolver.match(source.chunks, target.chunks)

    async with semaphore:
        return await resolver.match(source.chunks, target.chunks)


async def run_batch(
    source_docs: List[DocumentChunks],
    target_docs: List[DocumentChunks],
    options: Union[MatchingOptions, float, None] = None,
    parallel_limit: Optional[int] = None,
) -> BatchReport:
    """
    เทียบทุกคู่ (source × target) พร้อมกัน
    - แต่ละคู่อิสระต่อกัน error ของคู่หนึ่งไม่กระทบคู่อื่น
    - parallel_limit = None → ไม่จำกัด (อ่านจาก env ถ้ามี)
    """

    start_time = time.perf_counter()

    resolver = MatchResolver(options)
    limit = parallel_limit if parallel_limit is not None else batch_parallel_limit()
    # semaphore ต้องสร้างใน event loop เดียวกับที่ใช้งาน
    semaphore = asyncio.Semaphore(limit) if limit else None

    pairs = [(s, t) for s in source_docs for t in target_docs]

    results = await asyncio.gather(
        *[_match_pair(resolver, s, t, semaphore) for s, t in pairs],
        return_exceptions=True,
    )

    report = BatchReport()

    for (source, target), result in zip(pairs, results):
        key = (source.id, target.id)

        if isinstance(result, BaseException):
            logger.error(
                "❌ Pair %s -> %s failed: %s",
                source.id,
                target.id,
                result,
                exc_info=result,
            )
            report.failures[key] = result
            continue

        if result is None:
            report.insufficient.append(key)
            continue

        report.matches.setdefault(source.id, {})[target.id] = result

    logger.debug(
        "Batch finished: pairs=%d matched=%d insufficient=%d failed=%d elapsed=%.2fs",
        len(pairs),
        len(pairs) - len(report.insufficient) - len(report.failures),
        len(report.insufficient),
        len(report.failures),
        time.perf_counter() - start_time,
    )

    return report


async def batch_find_matches(
    source_docs: List[DocumentChunks],
    target_docs: List[DocumentChunks],
    options: Union[MatchingOptions, float, None] = None,
) -> Dict[str, Dict[str, List[ChunkMatch]]]:
    """Nested mapping only; pairs without sufficient evidence or that failed are omitted."""
    report = await run_batch(source_docs, target_docs, options)
    return report.matches
