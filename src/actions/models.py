"""Quick action data models.

Pydantic models for the input handed to a quick action, its result, and the
JSON object the model-backed transform must return. Wire dumps use camelCase
(``fixedSql``) like the rest of the workbench API.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.copilot.models import Dialect


class ActionIntent(str, Enum):
    FIX_SQL_ERROR = "fix-sql-error"
    OPTIMIZE_PERFORMANCE = "optimize-performance"
    REWRITE_SQL = "rewrite-sql"
    TO_AGGREGATION = "to-aggregation"


class Risk(str, Enum):
    """How much a proposed SQL change should be reviewed before use."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class _ActionModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionError(_ActionModel):
    message: str
    code: str | int | None = None


class ActionContext(_ActionModel):
    """The fixed "last execution" a quick action works on."""

    dialect: Dialect = Dialect.UNKNOWN
    sql: str
    database: str | None = None
    error: ActionError | None = None

    @property
    def error_message(self) -> str:
        return self.error.message if self.error else ""


class ActionResult(_ActionModel):
    """Proposed change returned by a quick action.

    Attributes:
        title: Short headline for the proposal.
        explanation: What changed and why.
        fixed_sql: Complete SQL to replace the input with.
        risk: Review level; always high when fixed_sql equals the input.
    """

    title: str
    explanation: str
    fixed_sql: str
    risk: Risk


class TransformOutput(_ActionModel):
    """JSON object the model must reply with."""

    title: str = Field(description="Short headline for the change")
    explanation: str = Field(description="What was changed and why")
    fixed_sql: str = Field(default="", description="The complete rewritten SQL")
    risk: Risk = Field(default=Risk.MEDIUM, description="low, medium or high")
