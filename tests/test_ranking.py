import sys
import unittest
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from readiness_tracking.services.ranking import (
    DEFAULT_PAGE_SIZE,
    PaginationState,
    clamp_page,
    paginate,
    rank_by_score,
    total_pages,
)


@dataclass(frozen=True)
class Scored:
    name: str
    composite_score: float
    rank: int = 0


class RankByScoreTests(unittest.TestCase):
    def test_ranks_are_a_permutation(self) -> None:
        items = [Scored("a", 50.0), Scored("b", 90.0), Scored("c", 70.0)]
        ranked = rank_by_score(items)
        self.assertEqual([item.name for item in ranked], ["b", "c", "a"])
        self.assertEqual([item.rank for item in ranked], [1, 2, 3])

    def test_ties_keep_input_order(self) -> None:
        items = [Scored("first", 80.0), Scored("top", 95.0), Scored("second", 80.0), Scored("third", 80.0)]
        ranked = rank_by_score(items)
        self.assertEqual([item.name for item in ranked], ["top", "first", "second", "third"])

    def test_custom_key(self) -> None:
        items = [Scored("a", 1.0), Scored("b", 2.0)]
        ranked = rank_by_score(items, key=lambda item: -item.composite_score)
        self.assertEqual([item.name for item in ranked], ["a", "b"])

    def test_inputs_are_not_mutated(self) -> None:
        items = [Scored("a", 10.0)]
        rank_by_score(items)
        self.assertEqual(items[0].rank, 0)


class PaginateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.items = rank_by_score([Scored(f"w{i}", float(i)) for i in range(23)])

    def test_twenty_three_items_make_three_pages(self) -> None:
        page = paginate(self.items, page=1, page_size=10)
        self.assertEqual(page.total_pages, 3)
        self.assertEqual(page.total_count, 23)
        self.assertEqual(len(page.items), 10)
        self.assertFalse(page.has_previous)
        self.assertTrue(page.has_next)

    def test_out_of_range_page_is_clamped(self) -> None:
        page = paginate(self.items, page=5, page_size=10)
        self.assertEqual(page.page, 3)
        self.assertEqual([item.rank for item in page.items], [21, 22, 23])
        self.assertFalse(page.has_next)
        self.assertEqual(paginate(self.items, page=0, page_size=10).page, 1)
        self.assertEqual(paginate(self.items, page=-4, page_size=10).page, 1)

    def test_non_positive_page_size_uses_default(self) -> None:
        page = paginate(self.items, page=1, page_size=0)
        self.assertEqual(page.page_size, DEFAULT_PAGE_SIZE)

    def test_empty_result_set(self) -> None:
        page = paginate([], page=3, page_size=5)
        self.assertEqual(page.total_pages, 0)
        self.assertEqual(page.total_count, 0)
        self.assertEqual(page.page, 1)
        self.assertEqual(page.items, [])
        self.assertFalse(page.has_next)

    def test_helpers(self) -> None:
        self.assertEqual(total_pages(0, 10), 0)
        self.assertEqual(total_pages(20, 10), 2)
        self.assertEqual(total_pages(21, 5), 5)
        self.assertEqual(clamp_page(9, 0), 1)


class PaginationStateTests(unittest.TestCase):
    def test_page_size_change_resets_page(self) -> None:
        state = PaginationState(page=3, page_size=10).with_page_size(5)
        self.assertEqual(state, PaginationState(page=1, page_size=5))

    def test_same_page_size_keeps_page(self) -> None:
        state = PaginationState(page=3, page_size=10)
        self.assertIs(state.with_page_size(10), state)

    def test_with_page(self) -> None:
        self.assertEqual(PaginationState(page=1, page_size=20).with_page(2), PaginationState(page=2, page_size=20))


if __name__ == "__main__":
    unittest.main()
