"""
In-memory stand-in for the Motor database, enough of the query language
for the handlers and the recommendation engine.
"""
import copy
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database.mongo import get_database
from main_async import app


def _matches(doc, query):
    for field, cond in query.items():
        value = doc.get(field)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$nin" and value in arg:
                    return False
                if op == "$gt" and (value is None or not value > arg):
                    return False
                if op == "$ne" and value == arg:
                    return False
                if op not in ("$in", "$nin", "$gt", "$ne"):
                    raise NotImplementedError(op)
        elif value != cond:
            return False
    return True


def _sort_value(value):
    # Mongo orders null/missing before any value
    return (0, 0) if value is None else (1, value)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._limit = None

    def sort(self, key_or_list, direction=1):
        keys = [(key_or_list, direction)] if isinstance(key_or_list, str) else list(key_or_list)
        for field, order in reversed(keys):
            self._docs.sort(key=lambda d: _sort_value(d.get(field)), reverse=order == -1)
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs[:self._limit] if self._limit else self._docs
        return docs[:length] if length is not None else docs


class FakeCollection:
    def __init__(self):
        self.docs = []

    def _find(self, query):
        return [d for d in self.docs if _matches(d, query or {})]

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self._find(query)])

    async def find_one(self, query=None, projection=None):
        found = self._find(query)
        if not found:
            return None
        doc = copy.deepcopy(found[0])
        if projection:
            doc = {k: v for k, v in doc.items() if k == "_id" or projection.get(k)}
        return doc

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def insert_many(self, docs):
        ids = [(await self.insert_one(d)).inserted_id for d in docs]
        return SimpleNamespace(inserted_ids=ids)

    @staticmethod
    def _apply(doc, update, inserting=False):
        before = copy.deepcopy(doc)
        doc.update(update.get("$set", {}))
        if inserting:
            doc.update(update.get("$setOnInsert", {}))
        return doc != before

    async def update_one(self, query, update, upsert=False):
        found = self._find(query)
        if found:
            modified = self._apply(found[0], update)
            return SimpleNamespace(matched_count=1, modified_count=int(modified), upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
        doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
        doc["_id"] = ObjectId()
        self._apply(doc, update, inserting=True)
        self.docs.append(doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

    async def update_many(self, query, update):
        found = self._find(query)
        modified = sum(int(self._apply(doc, update)) for doc in found)
        return SimpleNamespace(matched_count=len(found), modified_count=modified)

    async def delete_one(self, query):
        found = self._find(query)
        if found:
            self.docs.remove(found[0])
        return SimpleNamespace(deleted_count=len(found[:1]))

    async def delete_many(self, query):
        found = self._find(query)
        self.docs = [d for d in self.docs if d not in found]
        return SimpleNamespace(deleted_count=len(found))

    async def estimated_document_count(self):
        return len(self.docs)

    async def count_documents(self, query):
        return len(self._find(query))

    async def create_index(self, keys, **kwargs):
        return str(keys)

    def aggregate(self, pipeline):
        docs = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            if "$match" in stage:
                docs = [d for d in docs if _matches(d, stage["$match"])]
            elif "$group" in stage:
                docs = self._group(docs, stage["$group"])
            else:
                raise NotImplementedError(stage)
        return FakeCursor(docs)

    @staticmethod
    def _group(docs, stage):
        key_field = stage["_id"].lstrip("$")
        groups = {}
        for doc in docs:
            groups.setdefault(doc.get(key_field), []).append(doc)

        out = []
        for key, members in groups.items():
            row = {"_id": key}
            for name, acc in stage.items():
                if name == "_id":
                    continue
                op, arg = next(iter(acc.items()))
                values = [m.get(arg.lstrip("$")) if isinstance(arg, str) else arg for m in members]
                if op == "$sum":
                    row[name] = sum(values)
                elif op == "$avg":
                    row[name] = sum(values) / len(values)
                else:
                    raise NotImplementedError(op)
            out.append(row)
        return out


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        return self._collections.setdefault(name, FakeCollection())

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    async def command(self, name):
        return {"ok": 1}


def make_recipe(**overrides):
    recipe = {
        "_id": ObjectId(),
        "name": "Test Recipe",
        "description": "",
        "ingredients": [],
        "instructions": [],
        "tags": [],
        "difficulty": "Easy",
        "avg_rating": 0.0,
        "ratings_count": 0,
        "created_at": datetime.now(timezone.utc),
    }
    recipe.update(overrides)
    return recipe


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def add_recipe(fake_db):
    def _add(**fields):
        recipe = make_recipe(**fields)
        fake_db.recipes.docs.append(recipe)
        return recipe
    return _add


@pytest.fixture
def client(fake_db, monkeypatch):
    monkeypatch.delenv("AUTH_REQUIRED", raising=False)
    app.dependency_overrides[get_database] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()
