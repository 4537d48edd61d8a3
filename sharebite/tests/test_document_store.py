import pytest

from ..core.database import DocumentStore, _sql_prefilter, new_document_id
from ..core.exceptions import (
    CommitFailedError,
    DatabaseError,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)


class TestDocumentStore:
    """Document store contract"""

    def test_set_and_get(self, store):
        store.set("things", "t1", {"name": "crate", "count": 3})

        doc = store.get("things", "t1")
        assert doc == {"id": "t1", "name": "crate", "count": 3}
        assert store.get("things", "missing") is None
        assert store.get("other", "t1") is None

    def test_set_overwrites(self, store):
        store.set("things", "t1", {"name": "crate", "count": 3})
        store.set("things", "t1", {"name": "box"})

        assert store.get("things", "t1") == {"id": "t1", "name": "box"}
        assert store.count("things") == 1

    def test_update_merges_fields(self, store):
        store.set("things", "t1", {"name": "crate", "count": 3})
        store.update("things", "t1", {"count": 4, "label": "fragile"})

        assert store.get("things", "t1") == {"id": "t1", "name": "crate", "count": 4, "label": "fragile"}

    def test_update_missing_document(self, store):
        with pytest.raises(NotFoundError):
            store.update("things", "nope", {"count": 1})

    def test_conditional_update(self, store):
        store.set("things", "t1", {"open": True})
        store.update("things", "t1", {"open": False}, precondition={"open": True})

        with pytest.raises(PreconditionFailed) as exc_info:
            store.update("things", "t1", {"open": False}, precondition={"open": True})
        assert exc_info.value.details["actual"] is False

    def test_delete(self, store):
        store.set("things", "t1", {"name": "crate"})
        store.delete("things", "t1")
        store.delete("things", "t1")

        assert store.get("things", "t1") is None

    def test_query_predicates(self, store):
        store.set("things", "a", {"kind": "fruit", "weight": 3, "tags": ["x"]})
        store.set("things", "b", {"kind": "fruit", "weight": 7})
        store.set("things", "c", {"kind": "bread", "weight": 5})
        store.set("things", "d", {"kind": "fruit"})

        def ids(predicates):
            return sorted(doc["id"] for doc in store.query("things", predicates))

        assert ids(None) == ["a", "b", "c", "d"]
        assert ids([("kind", "==", "fruit")]) == ["a", "b", "d"]
        assert ids([("kind", "!=", "fruit")]) == ["c"]
        assert ids([("weight", ">", 3)]) == ["b", "c"]
        assert ids([("weight", "<=", 5), ("kind", "==", "fruit")]) == ["a"]
        assert ids([("kind", "in", ["bread", "cheese"])]) == ["c"]
        # documents without the field never match
        assert ids([("weight", ">=", 0)]) == ["a", "b", "c"]

    def test_query_keeps_typed_equality(self, store):
        store.set("things", "a", {"flag": True, "code": "7", "size": 7})
        store.set("things", "b", {"flag": "true", "code": 7, "size": "7"})
        store.set("things", "c", {"name": "Caf\u00e9", "tags": "xyz"})

        def ids(predicates):
            return sorted(doc["id"] for doc in store.query("things", predicates))

        assert ids([("flag", "==", True)]) == ["a"]
        assert ids([("flag", "==", "true")]) == ["b"]
        assert ids([("code", "==", "7")]) == ["a"]
        assert ids([("code", "in", ["7", "8"])]) == ["a"]
        assert ids([("size", "==", 7)]) == ["a"]
        assert ids([("name", "==", "Caf\u00e9")]) == ["c"]
        assert ids([("code", "in", [])]) == []
        assert ids([("id", "in", ["b", "c"])]) == ["b", "c"]

    def test_prefilter_pushes_equality_into_sql(self):
        clauses, params = _sql_prefilter([
            ("foodItemId", "==", "f1"),
            ("status", "in", ["requested", "approved"]),
            ("isAvailable", "==", True),
            ("weight", ">", 3),
            ("size", "==", 7),
        ])

        assert clauses == [
            "json_extract_string(data, '$.foodItemId') = ?",
            "json_extract_string(data, '$.status') IN (?, ?)",
            "json_extract_string(data, '$.isAvailable') = ?",
        ]
        assert params == ["f1", "requested", "approved", "true"]

    def test_prefilter_skips_unsafe_field_names(self):
        clauses, params = _sql_prefilter([("a') OR 1=1 --", "==", "x")])

        assert clauses == []
        assert params == []
        assert _sql_prefilter([("status", "in", [])]) == (None, [])

    def test_query_rejects_unknown_operator(self, store):
        with pytest.raises(DatabaseError):
            store.query("things", [("kind", "~", "fruit")])

    def test_batch_commit(self, store):
        store.set("things", "old", {"name": "old"})

        batch = store.batch()
        batch.set("things", "new", {"name": "new"})
        batch.update("things", "old", {"name": "renamed"})
        batch.delete("things", "gone")
        assert len(batch) == 3
        batch.commit()

        assert store.get("things", "new")["name"] == "new"
        assert store.get("things", "old")["name"] == "renamed"

    def test_batch_is_all_or_nothing(self, store):
        store.set("things", "t1", {"open": True})

        batch = store.batch()
        batch.set("things", "t2", {"name": "partial"})
        batch.update("things", "t1", {"open": False})
        batch.update("things", "missing", {"open": False})
        with pytest.raises(NotFoundError):
            batch.commit()

        assert store.get("things", "t2") is None
        assert store.get("things", "t1")["open"] is True

    def test_batch_commits_once(self, store):
        batch = store.batch()
        batch.set("things", "t1", {"name": "crate"})
        batch.commit()

        with pytest.raises(DatabaseError):
            batch.commit()

    def test_transaction_rolls_back_application_error(self, store):
        with pytest.raises(ValidationError):
            with store.transaction() as txn:
                txn.set("things", "t1", {"name": "crate"})
                raise ValidationError("nope")

        assert store.get("things", "t1") is None

    def test_transaction_store_failure_is_commit_failed(self, store):
        with pytest.raises(CommitFailedError):
            with store.transaction() as txn:
                txn.set("things", "t1", {"name": "crate"})
                txn._conn.execute("SELECT * FROM no_such_table")

        assert store.get("things", "t1") is None

    def test_nested_transaction_joins_outer(self, store):
        with pytest.raises(ValidationError):
            with store.transaction() as outer:
                outer.set("things", "t1", {"name": "outer"})
                store.set("things", "t2", {"name": "inner"})
                raise ValidationError("abort both")

        assert store.get("things", "t1") is None
        assert store.get("things", "t2") is None

    def test_file_backed_store(self, tmp_path):
        path = tmp_path / "nested" / "store.duckdb"
        db = DocumentStore(str(path))
        doc_id = new_document_id()
        db.set("things", doc_id, {"name": "persisted"})
        db.close()

        reopened = DocumentStore(str(path))
        assert reopened.get("things", doc_id)["name"] == "persisted"
        reopened.close()
