import unittest

from showcase.models import PortfolioEntry
from showcase.query import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    EntryQuery,
    Pagination,
    SortMode,
    matches,
    parse_query,
    sort_entries,
)


def entry(entry_id, title, **fields):
    return PortfolioEntry(
        id=entry_id,
        title=title,
        description=fields.pop("description", ""),
        category=fields.pop("category", "AI/ML"),
        **fields,
    )


class ParseQueryTests(unittest.TestCase):
    def test_defaults(self):
        query = parse_query({})
        self.assertEqual(query, EntryQuery())
        self.assertEqual(query.page, 1)
        self.assertEqual(query.limit, DEFAULT_LIMIT)
        self.assertEqual(query.sort, SortMode.NEWEST)

    def test_invalid_values_fall_back(self):
        query = parse_query(
            {
                "page": "0",
                "limit": "abc",
                "sort": "random",
                "category": "Unknown",
                "featured": "maybe",
            }
        )
        self.assertEqual(query, EntryQuery())

    def test_limit_is_capped(self):
        self.assertEqual(parse_query({"limit": "1000"}).limit, MAX_LIMIT)

    def test_sort_names_and_aliases(self):
        self.assertEqual(parse_query({"sort": "인기순"}).sort, SortMode.POPULAR)
        self.assertEqual(parse_query({"sort": "Popular"}).sort, SortMode.POPULAR)
        self.assertEqual(parse_query({"sort": "name"}).sort, SortMode.NAME)
        self.assertEqual(parse_query({"sort": "조회순"}).sort, SortMode.VIEWS)

    def test_tags_and_search_are_split(self):
        query = parse_query({"tags": " AI, ,NLP ", "search": "  smart   factory "})
        self.assertEqual(query.tags, ("AI", "NLP"))
        self.assertEqual(query.search_terms, ("smart", "factory"))

    def test_skip(self):
        self.assertEqual(parse_query({"page": "3", "limit": "5"}).skip, 10)


class PaginationTests(unittest.TestCase):
    def test_metadata(self):
        pagination = Pagination.compute(EntryQuery(page=2, limit=4), 9)
        self.assertEqual(pagination.total_pages, 3)
        self.assertTrue(pagination.has_next)
        self.assertTrue(pagination.has_prev)

    def test_empty_result(self):
        pagination = Pagination.compute(EntryQuery(), 0)
        self.assertEqual(
            pagination.as_dict(),
            {
                "currentPage": 1,
                "totalPages": 0,
                "totalItems": 0,
                "itemsPerPage": DEFAULT_LIMIT,
                "hasNext": False,
                "hasPrev": False,
            },
        )

    def test_last_page(self):
        pagination = Pagination.compute(EntryQuery(page=3, limit=4), 9)
        self.assertFalse(pagination.has_next)


class InMemoryRenderingTests(unittest.TestCase):
    def setUp(self):
        self.entries = [
            entry("a", "Old featured", featured=True, created_at=1.0, views=1),
            entry("b", "Newest", created_at=5.0, views=10, likes=1),
            entry("c", "Middle", created_at=3.0, views=10, likes=4),
            entry("d", "New featured", featured=True, created_at=4.0, views=2),
        ]

    def ids(self, sort):
        return [e.id for e in sort_entries(self.entries, sort)]

    def test_every_sort_lists_featured_first(self):
        self.assertEqual(self.ids(SortMode.NEWEST), ["d", "a", "b", "c"])
        self.assertEqual(self.ids(SortMode.POPULAR), ["d", "a", "c", "b"])
        self.assertEqual(self.ids(SortMode.NAME), ["d", "a", "c", "b"])
        self.assertEqual(self.ids(SortMode.VIEWS), ["d", "a", "b", "c"])

    def test_search_is_case_insensitive_across_fields(self):
        item = entry("x", "Smart Factory", description="IoT dashboard", tags=["MES"])
        self.assertTrue(matches(item, parse_query({"search": "factory"})))
        self.assertTrue(matches(item, parse_query({"search": "DASH"})))
        self.assertTrue(matches(item, parse_query({"search": "nothing mes"})))
        self.assertFalse(matches(item, parse_query({"search": "chatbot"})))

    def test_tag_filter_matches_any_tag(self):
        item = entry("x", "T", tags=["AI", "NLP"])
        self.assertTrue(matches(item, parse_query({"tags": "IoT,NLP"})))
        self.assertFalse(matches(item, parse_query({"tags": "IoT"})))


if __name__ == "__main__":
    unittest.main()
