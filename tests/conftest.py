import os

import pytest

from pulumi_graph.template import Template, load_template_file

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def template_path() -> str:
    return os.path.join(FIXTURES, "pulumi.yml")


@pytest.fixture
def compose_path() -> str:
    return os.path.join(FIXTURES, "docker-compose.yml")


@pytest.fixture
def template(template_path: str) -> Template:
    return load_template_file(template_path)


@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, text: str) -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)

    return _write
