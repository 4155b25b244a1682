from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

ANNOTATION_DELIMITER = "#"


class ExplanationResult(BaseModel):
    """Structured explanation of a single command, replaced wholesale per request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    issue: StrictStr = Field(..., description="What the command does")
    cause: StrictStr = Field(..., description="The operational logic behind it")
    solution: StrictStr = Field(..., description="How to fix or improve it")
    examples: List[StrictStr] = Field(
        ..., description="Equivalent command variants, optionally '# annotated'"
    )

    def example_lines(self) -> List[ExampleLine]:
        return [split_example(example) for example in self.examples]


class ExampleLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: str
    annotation: Optional[str] = None

    @property
    def copy_text(self) -> str:
        """The command as it would be copied to the clipboard."""
        return self.command.strip()


def split_example(example: str) -> ExampleLine:
    """
    Split an example into its command and trailing annotation.

    Only the first delimiter is significant; the annotation may itself
    contain '#'. The command keeps its original spacing.
    """
    command, delimiter, annotation = example.partition(ANNOTATION_DELIMITER)
    if not delimiter:
        return ExampleLine(command=example)
    return ExampleLine(command=command, annotation=annotation.strip())
