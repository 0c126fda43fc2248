import unittest
from datetime import datetime, timezone

from homebase.schemas import QuoteData, Task
from homebase.storage import PersistedList, PersistedValue, load_text, save_text

from storage_helpers import make_storage


def _task(task_id, title, completed=False):
    return Task(
        id=task_id,
        title=title,
        completed=completed,
        priority="Low",
        created_at=datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc),
    )


class TestPersistedList(unittest.TestCase):
    def setUp(self):
        self.storage = make_storage(self)
        self.tasks = PersistedList(self.storage, "todos", Task)

    def test_missing_key_loads_empty_list(self):
        self.assertEqual(self.tasks.load(), [])

    def test_save_then_load_keeps_records_and_order(self):
        items = [_task("b", "Second"), _task("a", "First", completed=True)]
        self.tasks.save(items)
        self.assertEqual(self.tasks.load(), items)

    def test_save_overwrites_previous_value(self):
        self.tasks.save([_task("a", "First"), _task("b", "Second")])
        self.tasks.save([_task("c", "Only")])
        self.assertEqual([task.id for task in self.tasks.load()], ["c"])

    def test_stored_json_uses_camel_case_keys(self):
        self.tasks.save([_task("a", "First")])
        raw = self.storage.get_item("todos")
        self.assertIn('"createdAt"', raw)
        self.assertNotIn("created_at", raw)

    def test_unparsable_content_loads_empty_list(self):
        for raw in ("{not json", '{"id": "a"}', '[{"id": "a"}]', '"text"'):
            with self.subTest(raw=raw):
                self.storage.set_item("todos", raw)
                self.assertEqual(self.tasks.load(), [])


class TestKeyValueStorage(unittest.TestCase):
    def setUp(self):
        self.storage = make_storage(self)

    def test_listeners_receive_written_keys_until_unsubscribed(self):
        seen = []
        unsubscribe = self.storage.subscribe(seen.append)
        self.storage.set_item("todos", "[]")
        self.storage.remove_item("todos")
        unsubscribe()
        self.storage.set_item("moodEntries", "[]")
        self.assertEqual(seen, ["todos", "todos"])

    def test_failing_listener_does_not_fail_the_write(self):
        def _broken(key):
            raise RuntimeError("boom")

        self.storage.subscribe(_broken)
        with self.assertLogs("homebase.storage", level="ERROR"):
            self.storage.set_item("todos", "[]")
        self.assertEqual(self.storage.get_item("todos"), "[]")

    def test_remove_item_clears_value(self):
        self.storage.set_item("weatherData", "{}")
        self.storage.remove_item("weatherData")
        self.assertIsNone(self.storage.get_item("weatherData"))


class TestPersistedValue(unittest.TestCase):
    def setUp(self):
        self.storage = make_storage(self)

    def test_round_trip_and_unreadable_value(self):
        value = PersistedValue(self.storage, "dailyQuote", QuoteData)
        self.assertIsNone(value.load())
        quote = QuoteData(content="Keep going.", author="Someone", date_added=datetime(2025, 3, 1, tzinfo=timezone.utc))
        value.save(quote)
        self.assertEqual(value.load(), quote)
        self.storage.set_item("dailyQuote", "[1, 2]")
        self.assertIsNone(value.load())

    def test_text_values(self):
        self.assertIsNone(load_text(self.storage, "lastQuoteFetch"))
        save_text(self.storage, "lastQuoteFetch", "2025-03-01")
        self.assertEqual(load_text(self.storage, "lastQuoteFetch"), "2025-03-01")
        self.assertEqual(self.storage.get_item("lastQuoteFetch"), '"2025-03-01"')


if __name__ == "__main__":
    unittest.main()
