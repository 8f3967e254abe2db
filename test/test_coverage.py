import pytest

from docmatch.match.models import ChunkMatch
from docmatch.report.coverage import CoverageScorer

from conftest import basis, make_chunk


def _chunks(prefix, sizes, pages=None):
    pages = pages or [i + 1 for i in range(len(sizes))]
    return [
        make_chunk(f"{prefix}{i}", basis(0), index=i, page_number=pages[i], character_count=size)
        for i, size in enumerate(sizes)
    ]


def _match(a, b, score):
    return ChunkMatch(chunk_a=a.ref(), chunk_b=b.ref(), score=score)


class TestCoverageScorer:

    def test_no_matches(self):
        report = CoverageScorer().score(None, _chunks("a", [100]), _chunks("b", [100]))

        assert report.coverage_a == 0.0
        assert report.overall == 0.0
        assert report.sections == []

    def test_many_to_one_counts_chunk_once(self):
        a = _chunks("a", [500, 500, 1000])
        b = _chunks("b", [400, 1600])
        matches = [_match(a[0], b[0], 0.99), _match(a[1], b[0], 0.95)]

        report = CoverageScorer().score(matches, a, b)

        assert report.coverage_a == 50.0
        assert report.coverage_b == 20.0
        assert report.overall == 20.0
        assert report.match_count == 2
        assert report.mean_score == pytest.approx(0.97)

    def test_sections_split_on_index_gap(self):
        a = _chunks("a", [100] * 6, pages=[1, 1, 2, 4, 5, 5])
        b = _chunks("b", [100] * 6, pages=[7, 8, 8, 9, 12, 13])
        matches = [
            _match(a[4], b[4], 0.92),
            _match(a[0], b[0], 0.98),
            _match(a[1], b[1], 0.96),
            _match(a[5], b[5], 0.94),
        ]

        sections = CoverageScorer().build_sections(matches)

        assert [(s.start_index, s.end_index) for s in sections] == [(0, 1), (4, 5)]
        assert sections[0].pages_a == (1, 1)
        assert sections[0].pages_b == (7, 8)
        assert sections[0].section_label == "page 1"
        assert sections[1].section_label == "page 5"
        assert sections[1].chunk_count == 2
        assert sections[1].mean_score == pytest.approx(0.93)

    def test_section_label_for_page_range(self):
        a = _chunks("a", [100] * 3, pages=[2, 3, 4])
        b = _chunks("b", [100] * 3)
        matches = [_match(a[i], b[i], 0.95) for i in range(3)]

        sections = CoverageScorer().build_sections(matches)

        assert len(sections) == 1
        assert sections[0].section_label == "pages 2-4"
