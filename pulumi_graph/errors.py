# errors.py
"""
Errors raised while loading and ordering a template.

Everything derives from ValueError so callers that only expect bad input
can keep catching that.
"""

from typing import List, Optional, Sequence, Tuple


class TemplateError(ValueError):
    pass


class ParseError(TemplateError):
    """The document is not well-formed or does not have the expected shape."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        if line is not None:
            where = f"line {line}" if column is None else f"line {line}, column {column}"
            message = f"{message} ({where})"
        super().__init__(message)


class UnresolvedSyntaxError(TemplateError):
    """A ${...} token is unterminated or its body is not a valid reference."""

    def __init__(self, text: str, column: int, reason: str):
        self.text = text
        self.column = column
        self.reason = reason
        super().__init__(f"Invalid interpolation in '{text}' at column {column}: {reason}")


class UnknownReferenceError(TemplateError):
    """One or more references point at names that are not declared."""

    def __init__(self, names: Sequence[str], occurrences: Sequence[Tuple[str, str, str]] = ()):
        # occurrences: (source, field, target) for every offending reference
        self.names: List[str] = list(names)
        self.occurrences: List[Tuple[str, str, str]] = list(occurrences)
        super().__init__(f"Unknown reference(s): {', '.join(self.names)}")


class CyclicDependencyError(TemplateError):
    def __init__(self, cycles: Sequence[Sequence[str]]):
        self.cycles: List[List[str]] = [list(c) for c in cycles]
        self.cycle: List[str] = self.cycles[0] if self.cycles else []
        rendered = "; ".join(" -> ".join(c + [c[0]]) for c in self.cycles)
        super().__init__(f"Circular dependency: {rendered}")


class MissingValueError(TemplateError):
    """A reference resolved to an entity but not to one of its fields."""

    def __init__(self, reference: str, detail: str):
        self.reference = reference
        super().__init__(f"Cannot resolve '{reference}': {detail}")
