import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nlcrud.deps import configure_logging, get_router, get_settings, load_env
from nlcrud.errors import InputError, NLCrudError
from nlcrud.models import QueryRequest, QueryResponse
from nlcrud.services.db import QueryExecutor, make_engine
from nlcrud.services.llm import build_chat_model
from nlcrud.services.nlp2sql import format_error, format_result
from nlcrud.services.router import OperationRouter
from nlcrud.services.schema import load_schema

# Load env ASAP
load_env()

logger = logging.getLogger(__name__)


def _log_unhandled(loop, context):
    exc = context.get("exception")
    logger.error("UNHANDLED: %s", exc or context.get("message"), exc_info=exc)


def _envelope(response: QueryResponse, status_code: int = 200) -> JSONResponse:
    content = {"status": response.status}
    if response.status == "ok":
        content["data"] = response.data
    else:
        content["error"] = response.error
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails fast: no request is served without settings, schema, store and model
    settings = get_settings()
    configure_logging(settings.log_level)
    schema = load_schema(settings.schema_path)
    engine = make_engine(settings)
    try:
        app.state.router = OperationRouter(schema, build_chat_model(settings), QueryExecutor(engine))
        asyncio.get_running_loop().set_exception_handler(_log_unhandled)
        logger.info("Ready to serve /query against %s", engine.url.render_as_string(hide_password=True))

        yield
    finally:
        await engine.dispose()


def create_app() -> FastAPI:
    # POST /query is the whole surface: no docs, no schema, no slash redirects
    app = FastAPI(
        title="NL → SQL CRUD",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        # Only POST /query exists; wrong paths and wrong methods alike are "Not found"
        if exc.status_code in (404, 405):
            return _envelope(format_error(Exception("Not found")), 404)
        return _envelope(format_error(Exception(str(exc.detail))), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        logger.error("ERROR: malformed request body: %s", exc.errors())
        return _envelope(format_error(InputError("Malformed request body")), 400)

    @app.post("/query")
    async def query(req: QueryRequest, router: OperationRouter = Depends(get_router)):
        prompt = req.prompt or ""
        try:
            if not prompt.strip():
                raise InputError("`prompt` field required")
            logger.info("PROMPT: %s", prompt)
            result = await router.route(prompt)
            return _envelope(format_result(result))
        except NLCrudError as e:
            logger.error("ERROR: %s", e)
            return _envelope(format_error(e), e.status_code)
        except Exception as e:
            logger.exception("ERROR: %s", e)
            return _envelope(format_error(e), 500)

    return app


app = create_app()


def run():
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run("nlcrud.main:app", host=settings.host, port=settings.port)
