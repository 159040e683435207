"""
Document Store - the whole school data lives in one JSON document.

Every request loads the document, mutates it and writes it back.
Writers go through `transaction()`, which holds a process-wide lock
across load -> mutate -> save.
"""
import copy
import json
import logging
import os
import shutil
import threading
from contextlib import contextmanager

from services.exceptions import StorageError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3

# Har top-level collection ka empty shape
COLLECTION_DEFAULTS = {
    "facultyPosts": dict,
    "assignments": dict,
    "assignmentResults": dict,
    "progressCards": dict,
    "monthlyAttendance": list,
    "studentMasterRecords": dict,
    "feeCertificates": list,
    "studentFeeCertificates": dict,
    "hallTickets": list,
    "studentHallTickets": dict,
    "notifications": list,
}


def default_document() -> dict:
    doc = {name: factory() for name, factory in COLLECTION_DEFAULTS.items()}
    doc["history"] = {"admin": [], "faculty": {}, "receptionist": []}
    doc["schemaVersion"] = SCHEMA_VERSION
    return doc


def normalize(doc: dict) -> dict:
    """Make sure every top-level collection exists with the right type."""
    for name, factory in COLLECTION_DEFAULTS.items():
        if not isinstance(doc.get(name), factory):
            doc[name] = factory()

    history = doc.get("history")
    if not isinstance(history, dict):
        history = doc["history"] = {}
    for actor in ("admin", "receptionist"):
        if not isinstance(history.get(actor), list):
            history[actor] = []
    if not isinstance(history.get("faculty"), dict):
        history["faculty"] = {}
    return doc


# ==========================
#   MIGRATIONS
# ==========================

def _flatten_notifications(doc: dict) -> bool:
    notifications = doc.get("notifications")
    if not isinstance(notifications, dict):
        return False
    flat = []
    for role in ("admin", "faculty"):
        for item in notifications.get(role) or []:
            if isinstance(item, dict):
                item.setdefault("source", role)
                flat.append(item)
    doc["notifications"] = flat
    logger.info("Migrated %d role-keyed notifications to a flat list", len(flat))
    return True


def _rename_certificates(doc: dict) -> bool:
    if "receptionistFeeCertificates" not in doc or "feeCertificates" in doc:
        return False
    legacy = doc.pop("receptionistFeeCertificates")
    doc["feeCertificates"] = legacy if isinstance(legacy, list) else []
    logger.info("Renamed receptionistFeeCertificates to feeCertificates")
    return True


def _ensure_collections(doc: dict) -> bool:
    before = json.dumps(doc, sort_keys=True, default=str)
    normalize(doc)
    return json.dumps(doc, sort_keys=True, default=str) != before


MIGRATIONS = [
    (1, _flatten_notifications),
    (2, _rename_certificates),
    (3, _ensure_collections),
]


def migrate(doc: dict) -> bool:
    """Apply shape upgrades in order. Returns True when the document changed.

    Steps are idempotent, so they all run even on documents that already
    carry the current `schemaVersion`.
    """
    changed = False
    for version, step in MIGRATIONS:
        if step(doc):
            logger.debug("Migration step %d applied", version)
            changed = True
    if doc.get("schemaVersion") != SCHEMA_VERSION:
        doc["schemaVersion"] = SCHEMA_VERSION
        changed = True
    return changed


# ==========================
#   STORES
# ==========================

class DocumentStore:
    def __init__(self):
        self._lock = threading.RLock()

    def load(self) -> dict:
        raise NotImplementedError

    def save(self, doc: dict) -> None:
        raise NotImplementedError

    def initialize(self) -> None:
        with self._lock:
            doc = self.load()
            self.save(doc)

    @contextmanager
    def transaction(self):
        """Load, hand the document to the caller, save if the block succeeds."""
        with self._lock:
            doc = self.load()
            yield doc
            self.save(doc)


class JsonFileStore(DocumentStore):
    def __init__(self, path):
        super().__init__()
        self.path = str(path)
        self.backup_path = self.path + ".backup"

    def _read_raw(self) -> dict:
        with open(self.path, encoding="utf-8") as fh:
            doc = json.load(fh)
        if not isinstance(doc, dict):
            raise ValueError("data file root is not an object")
        return doc

    def load(self) -> dict:
        try:
            doc = self._read_raw()
        except (OSError, ValueError) as e:
            # missing / corrupt file -> empty document, request continues
            logger.error("Could not read %s, using empty document: %s", self.path, e)
            return default_document()
        migrate(doc)
        return doc

    def save(self, doc: dict) -> None:
        if os.path.exists(self.path):
            try:
                shutil.copyfile(self.path, self.backup_path)
            except OSError as e:
                logger.warning("Could not create backup %s: %s", self.backup_path, e)

        normalize(doc)
        tmp_path = self.path + ".tmp"
        try:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(doc, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error writing %s: %s", self.path, e)
            raise StorageError("Failed to save data") from e
        logger.debug("Data written to %s", self.path)

    def initialize(self) -> None:
        with self._lock:
            if not os.path.exists(self.path):
                self.save(default_document())
                logger.info("Created initial data file %s", self.path)
                return
            try:
                doc = self._read_raw()
            except (OSError, ValueError) as e:
                # corrupt file ko overwrite nahi karte; next write pe backup ban jayega
                logger.error("Data file %s is unreadable: %s", self.path, e)
                return
            if migrate(doc):
                self.save(doc)
                logger.info("Data structure updated to schema version %d", SCHEMA_VERSION)
            else:
                logger.info("Data file %s is up to date", self.path)


class MemoryStore(DocumentStore):
    """In-memory store with the same contract. Documents are deep-copied both ways."""

    def __init__(self, doc=None):
        super().__init__()
        self._doc = copy.deepcopy(doc) if doc is not None else default_document()
        migrate(self._doc)

    def load(self) -> dict:
        return copy.deepcopy(self._doc)

    def save(self, doc: dict) -> None:
        self._doc = copy.deepcopy(normalize(doc))


def build_store(config) -> DocumentStore:
    return JsonFileStore(config.DATA_FILE)
