from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FailureReason(str, Enum):
    """Which step of a conversion failed."""
    READ = "read"
    PARSE = "parse"
    WRITE = "write"


class ConversionOptions(BaseModel):
    """Knobs for header inference and cell quoting.

    The defaults reproduce the plain results export: headers taken from the
    first record only, cells rendered as JSON-encoded strings.
    """
    model_config = ConfigDict(frozen=True)

    header_strategy: Literal["first", "union"] = Field(
        "first",
        description="'first' uses the first record's keys, 'union' merges keys from every record",
    )
    quoting: Literal["json", "csv"] = Field(
        "json",
        description="'json' emits JSON-encoded cells, 'csv' emits RFC 4180 quoted cells",
    )


class ConversionFailure(BaseModel):
    reason: FailureReason
    message: str = Field(..., description="Text of the underlying error")


class ConversionResult(BaseModel):
    success: bool
    input_path: str
    output_path: str
    row_count: int = Field(0, ge=0, description="Number of data rows written, header excluded")
    failure: Optional[ConversionFailure] = None

    @classmethod
    def ok(cls, input_path: str, output_path: str, row_count: int) -> "ConversionResult":
        return cls(success=True, input_path=input_path, output_path=output_path, row_count=row_count)

    @classmethod
    def failed(cls, input_path: str, output_path: str, reason: FailureReason, message: str) -> "ConversionResult":
        return cls(
            success=False,
            input_path=input_path,
            output_path=output_path,
            failure=ConversionFailure(reason=reason, message=message),
        )
