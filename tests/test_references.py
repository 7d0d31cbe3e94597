"""Tests for ${...} interpolation parsing and rendering."""

from types import SimpleNamespace

import pytest

from pulumi_graph.document import from_python, load
from pulumi_graph.errors import MissingValueError, UnknownReferenceError, UnresolvedSyntaxError
from pulumi_graph.references import Interpolation, Reference, find_references, parse_interpolation, render


class TestParseInterpolation:
    def test_reference_with_literal_suffix(self):
        result = parse_interpolation("${registry.loginServer}/node-app:v1.0.0")
        assert result.references == [Reference("registry", path=("loginServer",))]
        assert result.references[0].field == "loginServer"
        assert result.literal == "/node-app:v1.0.0"
        assert not result.is_pure

    def test_bare_entity(self):
        result = parse_interpolation("${workspaceSharedKeys}")
        assert result.is_pure
        assert result.references[0] == Reference("workspaceSharedKeys")
        assert result.references[0].field is None

    def test_index_then_field(self):
        reference = parse_interpolation("${adminPasswords[0].value}").references[0]
        assert reference.entity == "adminPasswords"
        assert reference.index == 0
        assert reference.path == ("value",)

    def test_index_inside_field_path(self):
        reference = parse_interpolation("${a.b[0].c}").references[0]
        assert reference == Reference("a", None, ("b", 0, "c"))
        assert reference.field == "b[0].c"
        assert str(reference) == "${a.b[0].c}"

    def test_literal_prefix(self):
        result = parse_interpolation("https://${containerapp.configuration.ingress.fqdn}")
        assert result.parts[0] == "https://"
        assert result.references[0].field == "configuration.ingress.fqdn"

    def test_several_references(self):
        result = parse_interpolation("${a.x}-${b.y}")
        assert [r.entity for r in result.references] == ["a", "b"]
        assert result.literal == "-"

    def test_plain_text(self):
        assert parse_interpolation("westeurope") == Interpolation(("westeurope",))

    def test_escaped_token_is_literal(self):
        result = parse_interpolation("cost: $${price}")
        assert result.references == []
        assert result.literal == "cost: ${price}"

    def test_stray_closing_brace_is_literal(self):
        assert parse_interpolation("a}b").literal == "a}b"

    @pytest.mark.parametrize(
        "text",
        [
            "${registry.loginServer",
            "prefix ${a",
            "${}",
            "${1abc}",
            "${a..b}",
            "${a[x]}",
            "${a.}",
            "${a b}",
            "${a${b}}",
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(UnresolvedSyntaxError):
            parse_interpolation(text)

    def test_malformed_reports_column(self):
        with pytest.raises(UnresolvedSyntaxError) as exc:
            parse_interpolation("abc ${x")
        assert exc.value.column == 5


class TestFindReferences:
    def test_paths_through_mappings_and_sequences(self):
        tree = load(
            "registryAuth:\n"
            "  - address: ${registry.loginServer}\n"
            "    password: ${adminPasswords[0].value}\n"
            "location: westeurope\n"
            "retentionInDays: 30\n"
        )
        found = find_references(tree, "properties")
        assert found == [
            ("properties.registryAuth[0].address", Reference("registry", path=("loginServer",))),
            ("properties.registryAuth[0].password", Reference("adminPasswords", 0, ("value",))),
        ]

    def test_no_prefix(self):
        tree = load("fn::invoke:\n  arguments:\n    workspaceName: ${workspace.name}\n")
        assert find_references(tree) == [
            ("fn::invoke.arguments.workspaceName", Reference("workspace", path=("name",))),
        ]

    def test_keys_are_not_scanned(self):
        assert find_references(from_python({"${a}": "plain"})) == []

    def test_malformed_scalar_fails(self):
        with pytest.raises(UnresolvedSyntaxError):
            find_references(load("name: ${registry.loginServer\n"))


class TestRender:
    values = {
        "registry": {"loginServer": "myregistry.azurecr.io", "name": "myregistry"},
        "adminPasswords": [{"value": "s3cret"}],
        "resourceGroup": SimpleNamespace(name="rg", id="/subscriptions/x/rg"),
        "sku": {"capacity": 3},
    }

    def test_mixed_text(self):
        node = load("image: ${registry.loginServer}/node-app:v1.0.0\n")
        assert render(node, self.values) == {"image": "myregistry.azurecr.io/node-app:v1.0.0"}

    def test_pure_reference_keeps_type(self):
        assert render(load("n: ${sku.capacity}\n"), self.values) == {"n": 3}

    def test_index_and_attribute_access(self):
        node = load("password: ${adminPasswords[0].value}\ngroup: ${resourceGroup.name}\n")
        assert render(node, self.values) == {"password": "s3cret", "group": "rg"}

    def test_untouched_values(self):
        node = load("location: westeurope\nretention: 30\ntags: [a, b]\n")
        assert render(node, self.values) == {"location": "westeurope", "retention": 30, "tags": ["a", "b"]}

    def test_builtins(self):
        node = load("context: ${pulumi.cwd}/node-app\n")
        assert render(node, {}, builtins={"pulumi": {"cwd": "."}}) == {"context": "./node-app"}

    def test_unknown_entity(self):
        with pytest.raises(UnknownReferenceError) as exc:
            render(load("a: ${missing.id}\n"), self.values)
        assert exc.value.names == ["missing"]

    def test_missing_field(self):
        with pytest.raises(MissingValueError):
            render(load("a: ${registry.password}\n"), self.values)

    def test_missing_attribute(self):
        with pytest.raises(MissingValueError):
            render(load("a: ${resourceGroup.location}\n"), self.values)

    def test_index_out_of_range(self):
        with pytest.raises(MissingValueError):
            render(load("a: ${adminPasswords[3].value}\n"), self.values)
