"""
Diagnostic data types shared by the rule, the linter and the fixer.
"""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel


class Fix(BaseModel):
    """A single textual edit, in byte offsets of the original source."""
    kind: Literal["replace", "insert_before"]
    start_byte: int
    end_byte: int
    text: str

    def to_edit(self) -> Dict[str, Any]:
        return {"start_byte": self.start_byte, "end_byte": self.end_byte, "text": self.text}


class Violation(BaseModel):
    rule_id: str
    message: str
    file_path: str = ""
    line_number: int
    column: int = 1
    end_line: int = 0
    end_column: int = 0
    node_type: str
    snippet: str = ""
    severity: str = "error"
    fix: Optional[Fix] = None

    @property
    def fixable(self) -> bool:
        return self.fix is not None
