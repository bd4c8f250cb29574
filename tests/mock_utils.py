"""Mock utilities for Firestore."""

import unittest
import unittest.mock
from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference

from peerfinder import create_app

ARRAY_OPERATORS = ("array_contains", "array_contains_any")


class MockTransaction:
    """Transaction stand-in that applies every write immediately."""

    def __init__(self, db: Any) -> None:
        self.db = db

    def get(self, ref_or_query: Any) -> Any:
        if isinstance(ref_or_query, DocumentReference):
            return ref_or_query.get()
        return list(ref_or_query.stream())

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        ref.set(data, merge=merge)

    def update(self, ref: Any, data: Any) -> None:
        ref.update(data)

    def delete(self, ref: Any) -> None:
        ref.delete()


class TransactionalMockFirestore(MockFirestore):
    """MockFirestore whose ``transaction()`` returns a MockTransaction."""

    def transaction(self, **kwargs: Any) -> MockTransaction:
        return MockTransaction(self)


class MockFirestoreBuilder:
    """Builder to modularize mockfirestore patching."""

    @staticmethod
    def patch_db_read() -> None:
        """Apply monkeypatches to mockfirestore to support FieldFilter and equality."""

        def collection_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(CollectionReference, "_where"):
            CollectionReference._where = CollectionReference.where
            CollectionReference.where = collection_where

        def query_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(Query, "_where"):
            Query._where = Query.where
            Query.where = query_where

        # Looking up a missing document leaves an empty one behind in
        # mockfirestore; array filters must skip it instead of failing.
        if hasattr(Query, "_compare_func") and not hasattr(
            Query, "_orig_compare_func"
        ):
            Query._orig_compare_func = Query._compare_func

            def compare_func(self: Any, op: str) -> Any:
                func = self._orig_compare_func(op)
                if op in ARRAY_OPERATORS:
                    return lambda x, y: x is not None and func(x, y)
                return func

            Query._compare_func = compare_func

        def doc_ref_eq(self: Any, other: Any) -> bool:
            if not isinstance(other, DocumentReference):
                return False
            return self._path == other._path

        if not hasattr(DocumentReference, "_orig_eq"):
            DocumentReference._orig_eq = DocumentReference.__eq__
            DocumentReference.__eq__ = doc_ref_eq
            DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

        # Patch DocumentReference.get to handle transaction argument
        if not hasattr(DocumentReference, "_orig_get"):
            DocumentReference._orig_get = DocumentReference.get

            def doc_ref_get(self: Any, transaction: Any = None) -> Any:
                """Handle transaction argument in get."""
                return self._orig_get()

            DocumentReference.get = doc_ref_get


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and equality."""
    MockFirestoreBuilder.patch_db_read()


class FirestoreTestCase(unittest.TestCase):
    """Base test case with a mock database, identity transactions and an app context.

    Services log through ``current_app``, so an application context is
    pushed for every test.
    """

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = TransactionalMockFirestore()

        transactional = unittest.mock.patch(
            "firebase_admin.firestore.transactional", side_effect=lambda f: f
        )
        transactional.start()
        self.addCleanup(transactional.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

    def add_user(self, user_id: str, name: str, **fields: Any) -> None:
        data = {
            "name": name,
            "email": f"{user_id}@example.com",
            "coursesSeeking": [],
        }
        data.update(fields)
        self.db.collection("users").document(user_id).set(data)

    def add_group(self, group_id: str, creator_id: str, **fields: Any) -> None:
        data = {
            "name": "Study Group",
            "creatorId": creator_id,
            "courses": ["CS 31"],
            "maxMembers": 4,
            "members": [creator_id],
            "isPublic": True,
        }
        data.update(fields)
        self.db.collection("groups").document(group_id).set(data)

    def group_doc(self, group_id: str) -> Any:
        return self.db.collection("groups").document(group_id).get()

    def group_data(self, group_id: str) -> dict[str, Any]:
        return self.group_doc(group_id).to_dict()


class FirestoreRouteTestCase(FirestoreTestCase):
    """Base test case driving the JSON API through the Flask test client."""

    def setUp(self) -> None:
        super().setUp()
        client = unittest.mock.patch(
            "firebase_admin.firestore.client", return_value=self.db
        )
        client.start()
        self.addCleanup(client.stop)
        self.client = self.app.test_client()

    def login(self, user_id: str) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id
