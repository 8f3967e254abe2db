import math
from typing import List, Optional

import numpy as np
import pytest

from docmatch.match.models import Chunk

DIM = 8


def basis(i: int, dim: int = DIM) -> List[float]:
    v = np.zeros(dim)
    v[i] = 1.0
    return v.tolist()


def tilted(cos: float, axis: int, dim: int = DIM) -> List[float]:
    """Unit vector with cosine `cos` against basis(0), leaning into `axis`."""
    v = np.zeros(dim)
    v[0] = cos
    v[axis] = math.sqrt(1.0 - cos * cos)
    return v.tolist()


def make_chunk(
    id: str,
    embedding: List[float],
    index: int = 0,
    page_number: int = 1,
    character_count: int = 500,
    text: Optional[str] = None,
) -> Chunk:
    return Chunk(
        id=id,
        index=index,
        page_number=page_number,
        character_count=character_count,
        embedding=embedding,
        text=text,
    )


@pytest.fixture
def chunk():
    return make_chunk


@pytest.fixture(autouse=True)
def clean_docmatch_env(monkeypatch):
    for name in (
        "DOCMATCH_PRIMARY_THRESHOLD",
        "DOCMATCH_JACCARD_THRESHOLD",
        "DOCMATCH_MIN_EVIDENCE_CHARS",
        "DOCMATCH_MIN_EVIDENCE_RATIO",
        "DOCMATCH_EARLY_EXIT_WINDOW",
        "DOCMATCH_BATCH_PARALLEL_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)
