import logging
from typing import Union

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from nlcrud.errors import CompletionError
from nlcrud.models import ExecutionResult
from nlcrud.services.db import QueryExecutor
from nlcrud.services.llm import build_messages, build_routing_messages, message_text
from nlcrud.services.nlp2sql import clean_sql_query
from nlcrud.services.operations import (
    OPERATIONS,
    OperationSpec,
    match_raw_sql,
    raw_operation,
)

logger = logging.getLogger(__name__)


class OperationInput(BaseModel):
    request: str = Field(description="The user's request in natural language")


class OperationRouter:
    """Turns a caller prompt into exactly one executed operation.

    Prompts that already start with SELECT/INSERT/UPDATE/DELETE run verbatim
    without calling the model. Everything else goes through one tool-calling
    request where the model picks a capability (select, create, update,
    delete); that capability then asks the model for SQL and executes it.
    A reply without a tool call is handed back as plain text.
    """

    def __init__(self, schema: str, chat_model, executor: QueryExecutor):
        self.schema = schema
        self.chat_model = chat_model
        self.executor = executor
        self.tools = {name: self._make_tool(op) for name, op in OPERATIONS.items()}
        self.agent = chat_model.bind_tools(list(self.tools.values()))

    def _make_tool(self, operation: OperationSpec) -> StructuredTool:
        async def run(request: str) -> ExecutionResult:
            return await self.run_operation(operation, request)

        return StructuredTool.from_function(
            coroutine=run,
            name=operation.name,
            description=f"{operation.name.upper()} rows based on a natural-language prompt",
            args_schema=OperationInput,
        )

    async def route(self, prompt: str) -> Union[ExecutionResult, str]:
        keyword = match_raw_sql(prompt)
        if keyword:
            logger.info("Fast path: %s", keyword)
            return await self.run_raw(keyword, prompt)
        return await self.delegate(prompt)

    async def run_raw(self, keyword: str, prompt: str) -> ExecutionResult:
        operation = raw_operation(keyword)
        sql = clean_sql_query(prompt)
        logger.info("%s SQL: %s", keyword, sql)
        return await self.executor.execute(operation.mode, sql)

    async def delegate(self, prompt: str) -> Union[ExecutionResult, str]:
        messages = build_routing_messages(self.schema, prompt, self.executor.dialect)
        decision = await self._invoke(self.agent, messages)
        if not decision.tool_calls:
            logger.info("Agent answered without a capability")
            return message_text(decision)

        # Only the first capability counts
        name = decision.tool_calls[0]["name"]
        tool = self.tools.get(name)
        if tool is None:
            raise CompletionError(f"Model chose an unknown capability: {name}")
        logger.info("Agent selected capability: %s", name)
        return await tool.ainvoke({"request": prompt})

    async def run_operation(self, operation: OperationSpec, request: str) -> ExecutionResult:
        messages = build_messages(self.schema, operation, request, self.executor.dialect)
        completion = await self._invoke(self.chat_model, messages)
        sql = clean_sql_query(message_text(completion))
        logger.info("%s SQL: %s", operation.name.upper(), sql)
        return await self.executor.execute(operation.mode, sql)

    async def _invoke(self, model, messages):
        try:
            return await model.ainvoke(messages)
        except Exception as exc:
            raise CompletionError(f"Completion service error: {exc}") from exc
