from pydantic import BaseModel, TypeAdapter
from typing import Any, Dict, List, Literal, Optional, Union


class QueryRequest(BaseModel):
    prompt: Optional[str] = None


class RowsResult(BaseModel):
    sql: str
    rows: List[Dict[str, Any]]


class CountResult(BaseModel):
    sql: str
    count: int


# Shapes are keyed by execution mode and never mixed.
ExecutionResult = Union[RowsResult, CountResult]
ExecutionResultAdapter = TypeAdapter(ExecutionResult)


class QueryResponse(BaseModel):
    status: Literal["ok", "error"]
    data: Any = None          # ExecutionResult or pass-through agent text
    error: Optional[str] = None
