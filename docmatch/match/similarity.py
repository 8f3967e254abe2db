# docmatch/match/similarity.py

import re
from typing import List, Optional, Sequence, Set

import numpy as np

from docmatch.match.errors import EmbeddingDimensionError
from docmatch.match.models import Chunk


# สระ/วรรณยุกต์ไทย (Mn) ไม่นับเป็น \w → รวมเข้าไปในคำ
_WORD = re.compile(r"(?:[^\W_]|[\u0E31\u0E34-\u0E3A\u0E47-\u0E4E])+")


# ==================================================
# Vector similarity
# ==================================================
def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape != b.shape:
        raise EmbeddingDimensionError(
            f"Vector dimension mismatch: {a.shape[0]} vs {b.shape[0]}"
        )

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / norm, -1.0, 1.0))


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    # แถวที่ norm = 0 → คงเป็นศูนย์ (similarity = 0)
    safe = np.where(norms == 0, 1.0, norms)
    return matrix / safe


def similarity_matrix(
    source_vectors: Sequence[Sequence[float]],
    target_vectors: Sequence[Sequence[float]],
) -> np.ndarray:
    """
    Cosine similarity ของทุกคู่ source × target ในครั้งเดียว
    shape = (len(source), len(target))
    """
    if len(source_vectors) == 0 or len(target_vectors) == 0:
        return np.zeros((len(source_vectors), len(target_vectors)))

    source = np.asarray(source_vectors, dtype=np.float64)
    target = np.asarray(target_vectors, dtype=np.float64)

    if source.ndim != 2 or target.ndim != 2 or source.shape[1] != target.shape[1]:
        raise EmbeddingDimensionError(
            f"Embedding matrix shape mismatch: {source.shape} vs {target.shape}"
        )

    sims = _normalize_rows(source) @ _normalize_rows(target).T
    return np.clip(sims, -1.0, 1.0)


def validate_dimensions(*chunk_lists: List[Chunk]) -> Optional[int]:
    """
    ทุก chunk ในการเปรียบเทียบเดียวกันต้องมี embedding ขนาดเท่ากัน (และไม่ว่าง)
    คืนค่า dimension, หรือ None ถ้าไม่มี chunk เลย
    """
    dimension: Optional[int] = None

    for chunks in chunk_lists:
        for chunk in chunks:
            size = len(chunk.embedding)
            if size == 0:
                raise EmbeddingDimensionError(f"Chunk {chunk.id!r} has an empty embedding")
            if dimension is None:
                dimension = size
            elif size != dimension:
                raise EmbeddingDimensionError(
                    f"Chunk {chunk.id!r} has embedding dimension {size}, expected {dimension}"
                )

    return dimension


# ==================================================
# Lexical overlap
# ==================================================
def tokenize(text: Optional[str]) -> Set[str]:
    if not text:
        return set()
    return set(_WORD.findall(text.lower()))


def jaccard_similarity(text_a: Optional[str], text_b: Optional[str]) -> float:
    return token_jaccard(tokenize(text_a), tokenize(text_b))


def token_jaccard(tokens_a: Set[str], tokens_b: Set[str]) -> float:
    union = tokens_a | tokens_b
    if not union:
        return 0.0

    return len(tokens_a & tokens_b) / len(union)
