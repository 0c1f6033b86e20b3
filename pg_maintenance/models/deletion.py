"""
Value types for a single deletion run.

- DeletionRequest: what to delete, built once from resolved configuration
- DeletionOutcome: what was deleted, returned only after a successful commit
- TransactionState: lifecycle of the run's one transaction
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.identifiers import is_valid_identifier

DEFAULT_PREDICATE_COLUMN = "dtcrea"


class TransactionState(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class DeletionRequest(BaseModel):
    """Immutable description of one run against one table."""

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(..., description="Target table, restricted to [A-Za-z0-9_]")
    threshold: str = Field(
        ..., description="Rows whose predicate column is below this date are deleted"
    )
    batch_size: int = Field(
        0, ge=0, description="Rows per DELETE statement; 0 deletes everything at once"
    )
    column: str = Field(
        DEFAULT_PREDICATE_COLUMN, description="Predicate column compared with threshold"
    )

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        if not is_valid_identifier(v):
            raise ValueError(f"Invalid table name: {v!r}")
        return v

    @field_validator("column")
    @classmethod
    def validate_column(cls, v: str) -> str:
        if not is_valid_identifier(v):
            raise ValueError(f"Invalid column name: {v!r}")
        return v

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Threshold cannot be empty or whitespace")
        return v

    @property
    def batched(self) -> bool:
        return self.batch_size > 0


class DeletionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rows_deleted: int = Field(0, ge=0)
    iterations: int = Field(0, ge=0)
