import logging

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from nlcrud.errors import ExecutionError
from nlcrud.models import CountResult, ExecutionResult, RowsResult
from nlcrud.services.operations import ExecutionMode

logger = logging.getLogger(__name__)

DIALECT_NAMES = {"postgresql": "PostgreSQL", "sqlite": "SQLite", "mysql": "MySQL"}


def make_engine(settings) -> AsyncEngine:
    return create_async_engine(settings.database_url, echo=settings.sql_echo, pool_pre_ping=True)


def _store_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class QueryExecutor:
    """Runs extracted SQL against the shared engine.

    ``rows`` mode returns every record with its column names in store order.
    ``affectedCount`` mode commits and returns the store's rowcount. The SQL
    goes to the driver as-is (no bind-parameter parsing).
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @property
    def dialect(self) -> str:
        name = self.engine.dialect.name
        return DIALECT_NAMES.get(name, name)

    async def execute(self, mode: ExecutionMode, sql: str) -> ExecutionResult:
        try:
            async with self.engine.connect() as conn:
                result = await conn.exec_driver_sql(sql)
                if mode is ExecutionMode.ROWS:
                    rows = [dict(row) for row in result.mappings().all()]
                    return RowsResult(sql=sql, rows=rows)
                count = result.rowcount
                await conn.commit()
                return CountResult(sql=sql, count=count)
        except SQLAlchemyError as exc:
            message = _store_message(exc)
            logger.warning("Store rejected SQL %r: %s", sql, message)
            raise ExecutionError(message) from exc
