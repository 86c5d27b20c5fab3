from contextlib import contextmanager
from threading import Lock

from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError

from splitledger.core import Ledger, NotFound
from splitledger.errors import Conflict
from splitledger.wallets.services import Wallet

_store = None


class _KeyedLocks:
    """One lock per key, created on first use."""

    def __init__(self):
        self._locks = {}
        self._guard = Lock()

    def get(self, key):
        with self._guard:
            return self._locks.setdefault(key, Lock())


class MemoryGroupStore:
    """Keeps ledger and wallet documents in dicts; used in tests and when no MONGO_URI is set."""

    def __init__(self):
        self._docs = {}
        self._wallets = {}
        self._lock = Lock()
        self._locks = _KeyedLocks()

    def save(self, ledger):
        with self._lock:
            self._docs[ledger.group_id] = ledger.to_document()

    def load(self, group_id):
        with self._lock:
            doc = self._docs.get(group_id)
        if doc is None:
            raise NotFound(f"Group not found: {group_id}")
        return Ledger.from_document(doc)

    def delete(self, group_id):
        with self._lock:
            if self._docs.pop(group_id, None) is None:
                raise NotFound(f"Group not found: {group_id}")

    def list_ids(self):
        with self._lock:
            return list(self._docs)

    @contextmanager
    def editing(self, group_id):
        """Load, hand out and save one group while holding its lock."""
        with self._locks.get(("groups", group_id)):
            ledger = self.load(group_id)
            yield ledger
            self.save(ledger)

    def save_wallet(self, wallet):
        with self._lock:
            self._wallets[wallet.owner] = wallet.to_document()

    def load_wallet(self, owner):
        """Stored wallet, or an empty one for a new owner."""
        with self._lock:
            doc = self._wallets.get(owner)
        return Wallet.from_document(doc) if doc else Wallet(owner)

    @contextmanager
    def editing_wallet(self, owner):
        with self._locks.get(("wallets", owner)):
            wallet = self.load_wallet(owner)
            yield wallet
            self.save_wallet(wallet)


class MongoGroupStore:
    """
    One document per group in ``groups`` and per owner in ``wallets``.

    Every write bumps a ``version`` field. ``editing`` only saves if the
    version it loaded is still current, so writers in other processes cannot
    silently overwrite each other; writers in this process queue on a lock.
    """

    def __init__(self, db):
        self.collection = db["groups"]
        self.wallets = db["wallets"]
        self._locks = _KeyedLocks()

    def save(self, ledger):
        self._write(self.collection, ledger.to_document(), upsert=True)

    def load(self, group_id):
        doc = self.collection.find_one({"_id": group_id})
        if doc is None:
            raise NotFound(f"Group not found: {group_id}")
        return Ledger.from_document(doc)

    def delete(self, group_id):
        result = self.collection.delete_one({"_id": group_id})
        if result.deleted_count == 0:
            raise NotFound(f"Group not found: {group_id}")

    def list_ids(self):
        return [doc["_id"] for doc in self.collection.find({}, {"_id": 1})]

    @contextmanager
    def editing(self, group_id):
        with self._locks.get(("groups", group_id)):
            doc = self.collection.find_one({"_id": group_id})
            if doc is None:
                raise NotFound(f"Group not found: {group_id}")
            ledger = Ledger.from_document(doc)
            yield ledger
            self._write(self.collection, ledger.to_document(), version=doc.get("version"))

    def save_wallet(self, wallet):
        self._write(self.wallets, wallet.to_document(), upsert=True)

    def load_wallet(self, owner):
        doc = self.wallets.find_one({"_id": owner})
        return Wallet.from_document(doc) if doc else Wallet(owner)

    @contextmanager
    def editing_wallet(self, owner):
        with self._locks.get(("wallets", owner)):
            doc = self.wallets.find_one({"_id": owner})
            wallet = Wallet.from_document(doc) if doc else Wallet(owner)
            yield wallet
            if doc is None:
                self._insert(self.wallets, wallet.to_document())
            else:
                self._write(self.wallets, wallet.to_document(), version=doc.get("version"))

    def _insert(self, collection, doc):
        try:
            collection.insert_one(dict(doc, version=1))
        except DuplicateKeyError:
            raise Conflict(f"{doc['_id']} was created concurrently, retry")

    _ANY_VERSION = object()

    def _write(self, collection, doc, version=_ANY_VERSION, upsert=False):
        """
        Store ``doc`` and bump its version.

        With ``version`` given, only a document still at that version is
        replaced; a newer one means someone else saved first.
        """
        body = dict(doc)
        key = body.pop("_id")
        query = {"_id": key}
        if version is not MongoGroupStore._ANY_VERSION:
            query["version"] = version
        result = collection.update_one(
            query, {"$set": body, "$inc": {"version": 1}}, upsert=upsert
        )
        if not upsert and result.matched_count == 0:
            raise Conflict(f"{key} was modified concurrently, retry")


def init_store(app):
    global _store
    mongo_uri = app.config.get("MONGO_URI")
    if not mongo_uri:
        _store = MemoryGroupStore()
        app.logger.info("[Store] Using in-memory group store")
        return _store

    client = MongoClient(mongo_uri)

    # get_default_database() takes the DB name from the URI; fall back to config
    db = client.get_default_database(default=app.config["MONGO_DB_NAME"])
    _store = MongoGroupStore(db)
    app.logger.info("[Store] Connected to MongoDB database: %s", db.name)
    return _store

def get_store():
    """Get the active group store. Must be called after init_store."""
    if _store is None:
        raise RuntimeError("Store not initialized. Call init_store first.")
    return _store
