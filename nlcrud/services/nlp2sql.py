import re
from typing import Union

from pydantic import BaseModel, ValidationError

from nlcrud.errors import ExtractionError
from nlcrud.models import ExecutionResultAdapter, QueryResponse

_FENCED_BLOCK = re.compile(r"```(?:sql)?\s*([\s\S]*?)```", re.IGNORECASE)
_TERMINATOR = ";"


def clean_sql_query(completion: str) -> str:
    """Pull a single SQL statement out of a free-form completion.

    Uses the first fenced block when there is one, otherwise the whole text.
    The result is trimmed and loses exactly one trailing terminator, so
    running it through here again returns it unchanged. Syntax is not checked.
    """
    block = _FENCED_BLOCK.search(completion)
    sql = (block.group(1) if block else completion).strip()
    if sql.endswith(_TERMINATOR):
        sql = sql[: -len(_TERMINATOR)].rstrip()
    if not sql:
        raise ExtractionError("Completion did not contain a SQL statement")
    if sql.endswith(_TERMINATOR):
        raise ExtractionError(f"Completion ends with repeated statement terminators: {sql!r}")
    return sql


def format_result(result: Union[BaseModel, str]) -> QueryResponse:
    if isinstance(result, BaseModel):
        return QueryResponse(status="ok", data=result.model_dump())
    # Agent text: one attempt at reading it as a serialized result
    try:
        parsed = ExecutionResultAdapter.validate_json(result)
    except ValidationError:
        return QueryResponse(status="ok", data=result)
    return QueryResponse(status="ok", data=parsed.model_dump())


def format_error(exc: Exception) -> QueryResponse:
    return QueryResponse(status="error", error=str(exc) or exc.__class__.__name__)
