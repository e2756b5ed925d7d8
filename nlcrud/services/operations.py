import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ExecutionMode(str, Enum):
    ROWS = "rows"
    AFFECTED_COUNT = "affectedCount"


@dataclass(frozen=True)
class OperationSpec:
    name: str
    directive: Optional[str]
    mode: ExecutionMode


SELECT = OperationSpec("select", "generate a SELECT.", ExecutionMode.ROWS)
CREATE = OperationSpec("create", "generate an INSERT.", ExecutionMode.AFFECTED_COUNT)
UPDATE = OperationSpec("update", "generate an UPDATE.", ExecutionMode.AFFECTED_COUNT)
DELETE = OperationSpec("delete", "generate a DELETE.", ExecutionMode.AFFECTED_COUNT)

# Order matters: it is the order the capabilities are offered to the model.
AGENT_OPERATIONS = (SELECT, CREATE, UPDATE, DELETE)
OPERATIONS = {op.name: op for op in AGENT_OPERATIONS}

_RAW_SQL = re.compile(r"^\s*(select|insert|update|delete)\b", re.IGNORECASE)


def raw_operation(keyword: str) -> OperationSpec:
    """Verbatim SQL: no directive, mode taken from the leading keyword."""
    mode = ExecutionMode.ROWS if keyword.upper() == "SELECT" else ExecutionMode.AFFECTED_COUNT
    return OperationSpec("raw", None, mode)


def match_raw_sql(prompt: str) -> Optional[str]:
    """Return the upper-cased leading SQL keyword if the prompt is already SQL."""
    match = _RAW_SQL.match(prompt)
    return match.group(1).upper() if match else None
