"""
In-memory stand-in for the subset of the Firestore client used by CivicPulse.

Enabled with USE_MOCK_DB=true for local development without Firebase
credentials, and used by the test suite. Supports collection/document CRUD,
chained where() filters, order_by(), limit() and stream().
"""

import copy
import operator
import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

DESCENDING = "DESCENDING"
ASCENDING = "ASCENDING"

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
    "not-in": lambda value, options: value not in options,
}


def _get_field(data: Dict, field_path: str) -> Any:
    value: Any = data
    for part in field_path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


class MockDocumentSnapshot:
    def __init__(self, reference: "MockDocumentReference", data: Optional[Dict]):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data) if data is not None else None

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str) -> Any:
        return _get_field(self._data or {}, field_path)


class MockDocumentReference:
    def __init__(self, store: Dict[str, Dict], doc_id: str):
        self._store = store
        self.id = doc_id

    def set(self, data: Dict, merge: bool = False) -> None:
        if merge and self.id in self._store:
            self._store[self.id].update(copy.deepcopy(data))
        else:
            self._store[self.id] = copy.deepcopy(data)

    def update(self, data: Dict) -> None:
        if self.id not in self._store:
            raise KeyError(f"No document to update: {self.id}")
        self._store[self.id].update(copy.deepcopy(data))

    def delete(self) -> None:
        self._store.pop(self.id, None)

    def get(self) -> MockDocumentSnapshot:
        return MockDocumentSnapshot(self, self._store.get(self.id))


class MockQuery:
    def __init__(
        self,
        store: Dict[str, Dict],
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        orders: Optional[List[Tuple[str, str]]] = None,
        limit_count: Optional[int] = None,
    ):
        self._store = store
        self._filters = filters or []
        self._orders = orders or []
        self._limit = limit_count

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        if op_string not in _OPERATORS:
            raise ValueError(f"Unsupported operator: {op_string}")
        return MockQuery(self._store, self._filters + [(field_path, op_string, value)], self._orders, self._limit)

    def order_by(self, field_path: str, direction: str = ASCENDING) -> "MockQuery":
        return MockQuery(self._store, self._filters, self._orders + [(field_path, direction)], self._limit)

    def limit(self, count: int) -> "MockQuery":
        return MockQuery(self._store, self._filters, self._orders, count)

    def _matches(self, data: Dict) -> bool:
        for field_path, op_string, value in self._filters:
            field_value = _get_field(data, field_path)
            # Firestore skips documents missing the field for every operator
            if field_value is None and op_string not in ("==", "in"):
                return False
            try:
                if not _OPERATORS[op_string](field_value, value):
                    return False
            except TypeError:
                return False
        return True

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        items = [(doc_id, data) for doc_id, data in list(self._store.items()) if self._matches(data)]
        for field_path, direction in reversed(self._orders):
            items.sort(
                key=lambda item: (_get_field(item[1], field_path) is None, _get_field(item[1], field_path)),
                reverse=(direction == DESCENDING),
            )
        if self._limit is not None:
            items = items[: self._limit]
        for doc_id, _ in items:
            yield MockDocumentReference(self._store, doc_id).get()

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, name: str, store: Dict[str, Dict]):
        super().__init__(store)
        self.id = name

    def document(self, doc_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self._store, doc_id or uuid.uuid4().hex[:20])


class MockFirestoreClient:
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict]] = {}

    def collection(self, name: str) -> MockCollectionReference:
        return MockCollectionReference(name, self._collections.setdefault(name, {}))

    def collections(self) -> List[MockCollectionReference]:
        return [MockCollectionReference(name, store) for name, store in self._collections.items()]
