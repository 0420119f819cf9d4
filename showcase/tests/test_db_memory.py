import threading
import unittest

from showcase.db import InMemoryPortfolioDb
from showcase.models import EntryDraft
from showcase.query import parse_query


class InMemoryPortfolioDbTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryPortfolioDb()

    def test_reads_tolerate_concurrent_writes(self):
        errors = []
        done = threading.Event()

        def write():
            try:
                for i in range(5000):
                    created = self.db.create_entry(
                        EntryDraft(
                            title=f"Entry {i}",
                            description="d",
                            category="AI/ML",
                            tags=["AI", f"t{i % 7}"],
                        )
                    )
                    if i % 3 == 0:
                        self.db.delete_entry(created.id)
            finally:
                done.set()

        writer = threading.Thread(target=write)
        writer.start()
        query = parse_query({"search": "entry", "tags": "AI"})
        while not done.is_set():
            try:
                self.db.find_entries(query)
                self.db.count_matching(query)
                self.db.count_entries(featured=False)
                self.db.category_counts()
                self.db.tag_counts()
                self.db.top_viewed()
            except RuntimeError as exc:
                errors.append(exc)
                break
        writer.join()
        self.assertEqual(errors, [])
        self.assertEqual(self.db.count_entries(), 5000 - 1667)

    def test_returned_entries_are_copies(self):
        created = self.db.create_entry(
            EntryDraft(title="T", description="D", category="IoT", tags=["a"])
        )
        fetched = self.db.get_entry(created.id)
        fetched.tags.append("b")
        fetched.views = 10
        stored = self.db.get_entry(created.id)
        self.assertEqual(stored.tags, ["a"])
        self.assertEqual(stored.views, 0)


if __name__ == "__main__":
    unittest.main()
