"""Reference resolution and dependency ordering for Pulumi YAML programs."""

from .errors import (
    CyclicDependencyError,
    MissingValueError,
    ParseError,
    TemplateError,
    UnknownReferenceError,
    UnresolvedSyntaxError,
)
from .container_apps import build_services
from .evaluator import Plan, evaluate, plan_file, topological_order
from .template import Entity, Template, load_template, load_template_file

__all__ = [
    "evaluate",
    "plan_file",
    "topological_order",
    "build_services",
    "Plan",
    "Entity",
    "Template",
    "load_template",
    "load_template_file",
    "TemplateError",
    "ParseError",
    "UnresolvedSyntaxError",
    "UnknownReferenceError",
    "CyclicDependencyError",
    "MissingValueError",
]
