# docmatch/match/errors.py


class DocMatchError(RuntimeError):
    """Base error for chunk matching."""


class EmbeddingDimensionError(DocMatchError, ValueError):
    """Embeddings within one comparison do not share a dimensionality."""


class InvalidOptionsError(DocMatchError, ValueError):
    """MatchingOptions value out of range."""
