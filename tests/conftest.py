"""
Pytest configuration and shared fixtures.

Provides a scripted chat model standing in for the completion service and a
file-backed SQLite store seeded with a small schema.
"""

import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import create_async_engine

from nlcrud.services.db import QueryExecutor
from nlcrud.services.router import OperationRouter

SCHEMA = '''model User {
  id    Int    @id @default(autoincrement())
  name  String
  email String @unique
}

model Restaurant {
  id   Int    @id @default(autoincrement())
  name String
  city String
}
'''


def tool_call(name, request="ignored"):
    """AIMessage that invokes one capability."""
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": {"request": request}, "id": f"call_{name}"}],
    )


class FakeToolCaller:
    def __init__(self, model):
        self.model = model

    async def ainvoke(self, messages, **kwargs):
        self.model.routing_calls.append(messages)
        return self.model._next(self.model.decisions)


class FakeChatModel:
    """Answers from scripted queues; an Exception in a queue is raised instead."""

    def __init__(self, completions=(), decisions=()):
        self.completions = list(completions)
        self.decisions = list(decisions)
        self.calls = []
        self.routing_calls = []
        self.bound_tools = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return FakeToolCaller(self)

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(messages)
        reply = self._next(self.completions)
        return AIMessage(content=reply) if isinstance(reply, str) else reply

    @staticmethod
    def _next(queue):
        if not queue:
            raise AssertionError("FakeChatModel ran out of scripted replies")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def schema():
    return SCHEMA


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            'CREATE TABLE "User" (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT UNIQUE)'
        )
        await conn.exec_driver_sql(
            'CREATE TABLE "Restaurant" (id INTEGER PRIMARY KEY, name TEXT NOT NULL, city TEXT)'
        )
        await conn.exec_driver_sql(
            """INSERT INTO "User" (id, name, email) VALUES
               (1, 'Ada', 'ada@example.com'),
               (2, 'Grace', 'grace@example.com')"""
        )
        await conn.exec_driver_sql(
            """INSERT INTO "Restaurant" (id, name, city) VALUES
               (1, 'Lou Malnati''s', 'Chicago'),
               (2, 'Katz''s', 'New York'),
               (3, 'Alinea', 'Chicago')"""
        )
    yield engine
    await engine.dispose()


@pytest.fixture
def executor(engine):
    return QueryExecutor(engine)


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def router(schema, chat_model, executor):
    return OperationRouter(schema, chat_model, executor)
