# docmatch/match/models.py

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Chunk:
    """
    ช่วงข้อความต่อเนื่อง 1 ช่วงของเอกสาร + embedding ที่ normalize มาแล้ว
    (สร้างโดย pipeline ภายนอก, core อ่านอย่างเดียว)
    """
    id: str
    index: int                      # ลำดับใน document (0-based)
    page_number: int                # หน้า (1-based)
    character_count: int
    embedding: Sequence[float] = field(repr=False)
    text: Optional[str] = field(default=None, repr=False)

    def ref(self) -> "ChunkRef":
        return ChunkRef(
            id=self.id,
            index=self.index,
            page_number=self.page_number,
            character_count=self.character_count,
        )


@dataclass(frozen=True)
class ChunkRef:
    """Lightweight projection of a Chunk (no text, no embedding)."""
    id: str
    index: int
    page_number: int
    character_count: int


@dataclass(frozen=True)
class ChunkMatch:
    chunk_a: ChunkRef
    chunk_b: ChunkRef
    score: float

    # --- มีค่าเฉพาะตอนที่ผ่าน lexical filter จริง ---
    jaccard_score: Optional[float] = None

    @property
    def pair_key(self) -> tuple:
        return (self.chunk_a.id, self.chunk_b.id)

    def swapped(self) -> "ChunkMatch":
        return ChunkMatch(
            chunk_a=self.chunk_b,
            chunk_b=self.chunk_a,
            score=self.score,
            jaccard_score=self.jaccard_score,
        )


@dataclass
class DocumentChunks:
    """เอกสาร 1 ฉบับสำหรับ batch: id + chunks ตามลำดับ"""
    id: str
    chunks: List[Chunk]
