"""Copilot context models: inferred SQL context, envelopes and fix input.

All models are frozen. A new envelope is built for every editor change and
is never mutated afterwards; equality is structural, so two envelopes built
from identical inputs compare equal.

Wire dumps use the camelCase field names of the workbench API:

    envelope.model_dump(by_alias=True, mode="json")
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

ENVELOPE_VERSION = 1


class Dialect(str, Enum):
    """Canonical SQL dialects understood by the copilot."""

    CLICKHOUSE = "clickhouse"
    DUCKDB = "duckdb"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    """How reliable an inferred SQL context is."""

    HIGH = "high"
    MID = "mid"
    LOW = "low"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class InferredTable(_FrozenModel):
    """A table or view referenced by the draft SQL.

    Attributes:
        database: Qualifying database (second-to-last identifier segment).
        name: Unquoted table name (last identifier segment).
        raw: Identifier exactly as it was written in the SQL.
    """

    database: str | None = None
    name: str
    raw: str


class InferredSqlContext(_FrozenModel):
    """Tables and database inferred from a SQL draft. Never persisted."""

    tables: tuple[InferredTable, ...] = ()
    database: str | None = None
    confidence: Confidence


class Selection(_FrozenModel):
    """Editor selection as offsets into the current draft."""

    start: int
    end: int


class EnvelopeMeta(_FrozenModel):
    """Editor identity carried alongside the context."""

    tab_id: str | None = None
    tab_name: str | None = None
    connection_id: str | None = None
    catalog: str | None = None


class SqlBaseline(_FrozenModel):
    database: str | None = None
    dialect: Dialect = Dialect.UNKNOWN


class SqlDraft(_FrozenModel):
    editor_text: str
    selection: Selection | None = None
    inferred: InferredSqlContext


class SqlContext(_FrozenModel):
    baseline: SqlBaseline
    draft: SqlDraft


class TableInfo(_FrozenModel):
    """Table selected in the table browser."""

    schema_name: str | None = Field(default=None, alias="schema")
    name: str
    selected_column: str | None = None
    row_count: int | None = None
    engine: str | None = None
    partition_key: str | None = None
    primary_key: str | None = None


class TableContext(_FrozenModel):
    database: str | None = None
    table: TableInfo


class _EnvelopeBase(_FrozenModel):
    version: Literal[1] = ENVELOPE_VERSION
    updated_at: int | None = None
    meta: EnvelopeMeta | None = None

    @property
    def tab_id(self) -> str | None:
        """Owning editor tab, if the envelope is bound to one."""
        if self.meta is None or not self.meta.tab_id:
            return None
        return self.meta.tab_id

    @property
    def connection_id(self) -> str | None:
        return self.meta.connection_id if self.meta else None


class SqlEnvelope(_EnvelopeBase):
    """Envelope for the SQL editor surface."""

    surface: Literal["sql"] = "sql"
    context: SqlContext


class TableEnvelope(_EnvelopeBase):
    """Envelope for the table browser surface."""

    surface: Literal["table"] = "table"
    context: TableContext


CopilotEnvelope = Annotated[Union[SqlEnvelope, TableEnvelope], Field(discriminator="surface")]

_ENVELOPE_ADAPTER: TypeAdapter = TypeAdapter(CopilotEnvelope)


def parse_envelope(data: dict) -> SqlEnvelope | TableEnvelope:
    """Validate a wire-format envelope dict into the matching surface model."""
    return _ENVELOPE_ADAPTER.validate_python(data)


class ExecutionError(_FrozenModel):
    message: str
    code: str | int | None = None


class LastExecution(_FrozenModel):
    """The most recent query execution in an editor tab."""

    occurred_at: int | None = None
    dialect: Dialect = Dialect.UNKNOWN
    database: str | None = None
    sql: str
    error: ExecutionError | None = None


class CopilotFixInput(_FrozenModel):
    """Input handed to quick actions."""

    surface: Literal["sql"] = "sql"
    meta: EnvelopeMeta | None = None
    last_execution: LastExecution
