import copy
import json
import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]

TOURNAMENTS = "tournaments"
PARTICIPANTS = "participants"
MATCHES = "matches"
RESULTS = "results"


class RecordStore:
    """
    Flat keyed collections of dict records.

    Subclasses only decide where a collection lives (`_load` / `_save`);
    every query and mutation is built on top of those two calls, so each
    public method reads and writes a whole collection at once.
    """

    COLLECTIONS = (TOURNAMENTS, PARTICIPANTS, MATCHES, RESULTS)

    def _load(self, collection: str) -> List[Record]:
        raise NotImplementedError

    def _save(self, collection: str, records: List[Record]):
        raise NotImplementedError

    def _check_collection(self, collection: str):
        if collection not in self.COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'.")

    @staticmethod
    def _matches(record: Record, predicate: Optional[Predicate], criteria: Dict[str, Any]) -> bool:
        if predicate is not None and not predicate(record):
            return False
        return all(record.get(field) == value for field, value in criteria.items())

    def get_all(self, collection: str) -> List[Record]:
        self._check_collection(collection)
        return self._load(collection)

    def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        for record in self.get_all(collection):
            if record.get("id") == record_id:
                return record
        return None

    def find(self, collection: str, predicate: Optional[Predicate] = None, **criteria) -> List[Record]:
        return [r for r in self.get_all(collection) if self._matches(r, predicate, criteria)]

    def insert(self, collection: str, record: Record) -> Record:
        records = self.get_all(collection)
        now = datetime.utcnow().isoformat()
        new_record = {**record, "id": str(uuid4()), "created_at": now, "updated_at": now}
        records.append(new_record)
        self._save(collection, records)
        return new_record

    def update(self, collection: str, record_id: str, updates: Record) -> Optional[Record]:
        records = self.get_all(collection)
        for i, record in enumerate(records):
            if record.get("id") == record_id:
                records[i] = {**record, **updates, "updated_at": datetime.utcnow().isoformat()}
                self._save(collection, records)
                return records[i]
        return None

    def delete(self, collection: str, record_id: str) -> bool:
        records = self.get_all(collection)
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        self._save(collection, remaining)
        return True

    def delete_where(self, collection: str, predicate: Optional[Predicate] = None, **criteria) -> int:
        records = self.get_all(collection)
        remaining = [r for r in records if not self._matches(r, predicate, criteria)]
        self._save(collection, remaining)
        return len(records) - len(remaining)

    def clear_all(self):
        for collection in self.COLLECTIONS:
            self._save(collection, [])
        logger.info("Record store cleared")

    def export_data(self) -> Dict[str, List[Record]]:
        return {collection: self.get_all(collection) for collection in self.COLLECTIONS}

    def import_data(self, data: Dict[str, List[Record]]):
        for collection in self.COLLECTIONS:
            if data.get(collection) is not None:
                self._save(collection, list(data[collection]))
        logger.info("Record store imported")


class JsonRecordStore(RecordStore):
    """One JSON file per collection under `data_dir`."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)
        for collection in self.COLLECTIONS:
            if not os.path.exists(self._path(collection)):
                self._save(collection, [])

    def _path(self, collection: str) -> str:
        return os.path.join(self.data_dir, f"{collection}.json")

    def _load(self, collection: str) -> List[Record]:
        path = self._path(collection)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r") as f:
                content = f.read()
                if not content:
                    return []
                return json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Could not decode JSON from %s. Treating collection as empty.", path)
            return []

    def _save(self, collection: str, records: List[Record]):
        with open(self._path(collection), "w") as f:
            json.dump(records, f, indent=4, default=str)


class MemoryRecordStore(RecordStore):
    def __init__(self):
        self._collections: Dict[str, List[Record]] = {c: [] for c in self.COLLECTIONS}

    def _load(self, collection: str) -> List[Record]:
        return copy.deepcopy(self._collections[collection])

    def _save(self, collection: str, records: List[Record]):
        self._collections[collection] = copy.deepcopy(records)
