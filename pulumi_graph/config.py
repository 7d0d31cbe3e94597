# config.py
"""
Settings for evaluating a template, optionally read from a YAML file:

    project: containerapps
    stack: dev
    cwd: .
    builtin_roots: [pulumi]
    check_outputs: true
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, List

REQUIRED_KEYS = ["project", "stack"]


@dataclass
class EvaluatorConfig:
    project: str = ""
    stack: str = "dev"
    cwd: str = "."
    # Reference roots provided by the engine rather than declared in the template
    builtin_roots: List[str] = field(default_factory=lambda: ["pulumi"])
    check_outputs: bool = True

    def builtin_values(self) -> Dict[str, Any]:
        values = {"cwd": self.cwd, "project": self.project, "stack": self.stack}
        return {root: values for root in self.builtin_roots}


def load_config(file_path: str) -> EvaluatorConfig:
    """Load and validate evaluator settings from the given file path."""
    with open(file_path, "r") as file:
        config_data = yaml.safe_load(file) or {}

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration in '{file_path}' must be a mapping")

    # Ensure required keys exist
    for key in REQUIRED_KEYS:
        if key not in config_data:
            raise ValueError(f"Missing required configuration key: {key}")

    roots = config_data.get("builtin_roots", ["pulumi"])
    if not isinstance(roots, list) or not all(isinstance(r, str) for r in roots):
        raise ValueError("'builtin_roots' must be a list of names")

    return EvaluatorConfig(
        project=str(config_data["project"]),
        stack=str(config_data["stack"]),
        cwd=str(config_data.get("cwd", os.path.dirname(os.path.abspath(file_path)))),
        builtin_roots=roots,
        check_outputs=bool(config_data.get("check_outputs", True)),
    )
