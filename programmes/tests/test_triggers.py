import unittest

from accounts.provisioning import AuthUser
from programmes.ingest import IngestResult
from programmes.mapper import programme_from_row
from programmes.storage import MemoryStore, StoreError
from programmes.tests.fixtures import COMPUTER_SCIENCE, make_row, to_csv
from programmes.triggers import (
    DATABASE_WRITE,
    STORAGE_OBJECT_CHANGE,
    USER_CREATED,
    DataSnapshot,
    EventDispatcher,
    Services,
    StorageObject,
    build_dispatcher,
    on_programmes_write,
    on_storage_object_change,
    watch_programmes,
)


def _fetcher(content: bytes, calls=None):
    def fetch(bucket, name):
        if calls is not None:
            calls.append((bucket, name))
        return content
    return fetch


class TestStorageObjectChange(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.calls = []
        self.services = Services(store=self.store, fetch_object=_fetcher(to_csv(COMPUTER_SCIENCE).encode("utf-8"), self.calls))

    def test_spreadsheet_upload_is_ingested(self):
        obj = StorageObject(bucket="b", name="uploads/programmes.csv", content_type="application/vnd.ms-excel", resource_state="exists")
        result = on_storage_object_change(obj, self.services)
        self.assertIsInstance(result, IngestResult)
        self.assertEqual(self.calls, [("b", "uploads/programmes.csv")])
        self.assertEqual(self.store.get("/Programmes/0/Programme"), "Computer Science")

    def test_other_content_types_ignored(self):
        obj = StorageObject(bucket="b", name="logo.png", content_type="image/png")
        self.assertIsNone(on_storage_object_change(obj, self.services))
        self.assertEqual(self.calls, [])
        self.assertIsNone(self.store.get("/Programmes"))

    def test_delete_events_ignored(self):
        obj = StorageObject(bucket="b", name="p.csv", content_type="application/vnd.ms-excel", resource_state="not_exists")
        self.assertIsNone(on_storage_object_change(obj, self.services))
        self.assertEqual(self.calls, [])

    def test_content_type_is_configurable(self):
        services = Services(store=self.store, fetch_object=self.services.fetch_object, csv_content_type="text/csv")
        obj = StorageObject(bucket="b", name="p.csv", content_type="text/csv")
        self.assertIsNotNone(on_storage_object_change(obj, services))

    def test_from_notification(self):
        obj = StorageObject.from_notification({
            "bucket": "b", "name": "dir/p.csv", "contentType": "application/vnd.ms-excel", "eventType": "OBJECT_DELETE",
        })
        self.assertEqual(obj.resource_state, "not_exists")
        self.assertEqual(obj.name, "dir/p.csv")
        self.assertEqual(StorageObject.from_notification({"name": "x"}).resource_state, "exists")


class TestProgrammesWrite(unittest.TestCase):
    def test_absent_value_is_a_noop(self):
        store = MemoryStore({"search": {"CSEC_Latin": {"k": {"Programme": "Classics"}}}})
        self.assertIsNone(on_programmes_write(DataSnapshot("/Programmes", None), Services(store=store)))
        self.assertEqual(list(store.get("/search")), ["CSEC_Latin"])

    def test_rebuilds_index(self):
        store = MemoryStore()
        services = Services(store=store, fetch_object=_fetcher(to_csv(COMPUTER_SCIENCE).encode("utf-8")))
        on_storage_object_change(StorageObject("b", "p.csv", "application/vnd.ms-excel"), services)
        on_programmes_write(DataSnapshot("/Programmes", store.get("/Programmes")), services)
        self.assertIn("ScienceComputer Science", store.get("/search/CSEC_English"))


class TestDispatcher(unittest.TestCase):
    def test_register_as_decorator_and_dispatch(self):
        dispatcher = EventDispatcher()
        seen = []

        @dispatcher.register("custom")
        def handler(payload, services):
            seen.append(payload)
            return "ok"

        self.assertEqual(dispatcher.dispatch("custom", 1, Services(store=None)), ["ok"])
        self.assertEqual(seen, [1])
        self.assertEqual(dispatcher.dispatch("unknown", 1, Services(store=None)), [])

    def test_build_dispatcher_wires_all_events(self):
        dispatcher = build_dispatcher()
        for event_type in (STORAGE_OBJECT_CHANGE, DATABASE_WRITE, USER_CREATED):
            self.assertEqual(len(dispatcher.handlers(event_type)), 1)

    def test_dispatchers_are_independent(self):
        a, b = build_dispatcher(), build_dispatcher()
        a.register(USER_CREATED, lambda payload, services: None)
        self.assertEqual(len(b.handlers(USER_CREATED)), 1)

    def test_user_created(self):
        store = MemoryStore()
        build_dispatcher().dispatch(USER_CREATED, AuthUser(uid="u1", email="u1@example.com"), Services(store=store))
        self.assertEqual(store.get("/users/u1"), {"uid": "u1", "email": "u1@example.com", "name": "User u1"})


class TestWatchProgrammes(unittest.TestCase):
    def test_ingestion_write_triggers_rebuild(self):
        store = MemoryStore()
        services = Services(store=store, fetch_object=_fetcher(to_csv(COMPUTER_SCIENCE).encode("utf-8")))
        dispatcher = build_dispatcher()
        registration = watch_programmes(store, dispatcher, lambda: services)
        try:
            dispatcher.dispatch(STORAGE_OBJECT_CHANGE, StorageObject("b", "p.csv", "application/vnd.ms-excel"), services)
            self.assertEqual(sorted(store.get("/search")), ["CSEC_English", "CSEC_Mathematics"])

            store.set("/Programmes", None)
            self.assertIn("CSEC_English", store.get("/search"))
        finally:
            registration.close()

    def test_failed_rebuild_does_not_stop_watching(self):
        store = MemoryStore()

        class RejectFirstIndexWrite:
            """Stands in for a database that rejects one /search write."""
            rejected = 0

            def get(self, path):
                return store.get(path)

            def set(self, path, value):
                if not self.rejected:
                    self.rejected += 1
                    raise StoreError("Invalid key 'CSEC_AB.C'")
                store.set(path, value)

        flaky = RejectFirstIndexWrite()
        registration = watch_programmes(store, build_dispatcher(), lambda: Services(store=flaky))
        try:
            with self.assertLogs("programmes.triggers", level="ERROR"):
                store.set("/Programmes", [programme_from_row(make_row(CSECMandatory="A.B.C")).to_dict()])
            self.assertIsNone(store.get("/search"))

            store.set("/Programmes", [programme_from_row(COMPUTER_SCIENCE).to_dict()])
            self.assertEqual(sorted(store.get("/search")), ["CSEC_English", "CSEC_Mathematics"])
        finally:
            registration.close()


if __name__ == "__main__":
    unittest.main()
