import logging
from typing import List

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq

from nlcrud.services.operations import OperationSpec

logger = logging.getLogger(__name__)

GROUNDING_PROMPT = """You have this database schema:

{schema}

Translate the user's request into a valid {dialect} query using ONLY those tables/columns. Return only the raw SQL, without explanations or markdown."""

OPERATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", GROUNDING_PROMPT + "\n\nSpecifically, {directive}"),
    ("human", "{request}"),
])

ROUTING_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You manage a {dialect} database with this schema:

{schema}

Pick the single tool that carries out the user's request: select to read rows, create to insert rows, update to change rows, delete to remove rows. Call it once with the request as input. If the request is not a database operation, answer briefly in plain text instead."""),
    ("human", "{request}"),
])


def build_messages(schema: str, operation: OperationSpec, request: str, dialect: str = "PostgreSQL") -> List[BaseMessage]:
    """System message (schema, grounding, directive) followed by the caller's text as-is."""
    if not operation.directive:
        raise ValueError(f"Operation {operation.name!r} has no directive; it does not go through the model")
    return OPERATION_PROMPT.format_messages(
        schema=schema, dialect=dialect, directive=operation.directive, request=request
    )


def build_routing_messages(schema: str, request: str, dialect: str = "PostgreSQL") -> List[BaseMessage]:
    return ROUTING_PROMPT.format_messages(schema=schema, dialect=dialect, request=request)


def message_text(message) -> str:
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, list):
        # Some providers return content as a list of parts
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in content
        )
    return str(content)


def build_chat_model(settings):
    if settings.llm_provider == "google":
        llm = ChatGoogleGenerativeAI(
            model=settings.llm_model,
            google_api_key=settings.llm_api_key,
            temperature=settings.llm_temperature,
        )
    elif settings.llm_provider == "groq":
        llm = ChatGroq(
            model=settings.llm_model,
            api_key=settings.llm_api_key,
            temperature=settings.llm_temperature,
        )
    else:
        raise ValueError(f"Unsupported LLM_PROVIDER: {settings.llm_provider}")
    logger.info("Using %s model %s", settings.llm_provider, settings.llm_model)
    return llm
