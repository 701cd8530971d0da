"""Tests for the command-line interface."""

import pytest
import yaml
from click.testing import CliRunner

from c4link.cli.main import cli
from c4link.core.model import Model


@pytest.fixture
def workspace(tmp_path):
    """A saved model file."""
    model = Model()
    customer = model.add_person("Customer", "Buys things")
    shop = model.add_software_system("Shop", "Online shop")
    web = shop.add_container("Web", "Storefront", "Python")
    database = shop.add_container("Database", "Orders", "PostgreSQL")
    customer.uses(web, "Browses", "HTTPS")
    web.uses(database, "Reads from", "SQL")
    server = model.add_deployment_node("Server", "Application server", environment="Live")
    server.add(web)
    server.add(database)

    path = tmp_path / "workspace.yml"
    model.save(path)
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestInfo:
    def test_info(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "info"])

        assert result.exit_code == 0
        assert "Total elements: 7" in result.output
        assert "Relationships: 3" in result.output
        assert "Environments: Live" in result.output

    def test_missing_model(self, runner, tmp_path):
        result = runner.invoke(cli, ["-m", str(tmp_path / "missing.yml"), "info"])

        assert result.exit_code == 1
        assert "Model not found" in result.output

    def test_malformed_model(self, runner, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("softwareSystems: [unclosed\n")

        result = runner.invoke(cli, ["-m", str(path), "info"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_model_from_environment(self, runner, workspace):
        result = runner.invoke(cli, ["info"], env={"C4LINK_MODEL": str(workspace)})

        assert result.exit_code == 0
        assert "Total elements: 7" in result.output


class TestListing:
    def test_elements(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "elements"])

        assert result.exit_code == 0
        assert "Customer" in result.output
        assert "Database" in result.output

    def test_elements_by_tag(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "elements", "--tag", "Person"])

        assert result.exit_code == 0
        assert "Customer" in result.output
        assert "Shop" not in result.output

    def test_relationships(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "relationships"])

        assert result.exit_code == 0
        assert "Browses" in result.output

    def test_relationships_by_style(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "relationships", "--style", "Asynchronous"])

        assert result.exit_code == 0
        assert "Browses" not in result.output


class TestValidate:
    def test_valid(self, runner, workspace):
        result = runner.invoke(cli, ["-m", str(workspace), "validate"])

        assert result.exit_code == 0
        assert "Validation passed" in result.output

    def test_strict_fails_on_warnings(self, runner, workspace):
        data = yaml.safe_load(workspace.read_text())
        del data["softwareSystems"][0]["description"]
        workspace.write_text(yaml.safe_dump(data))

        result = runner.invoke(cli, ["-m", str(workspace), "validate", "--strict"])

        assert result.exit_code == 1
        assert "strict mode" in result.output

    def test_unresolved_container(self, runner, workspace):
        data = yaml.safe_load(workspace.read_text())
        data["deploymentNodes"][0]["containerInstances"][0]["containerId"] = "99"
        workspace.write_text(yaml.safe_dump(data))

        result = runner.invoke(cli, ["-m", str(workspace), "validate"])

        assert result.exit_code == 1
        assert "container not found: 99" in result.output


class TestApply:
    @pytest.fixture
    def facts_file(self, tmp_path):
        path = tmp_path / "facts.yml"
        path.write_text(
            yaml.safe_dump(
                {
                    "facts": [
                        {
                            "source": "/Shop/Database",
                            "usesContainers": [{"destination": "Web", "description": "Notifies"}],
                        }
                    ]
                }
            )
        )
        return path

    def test_apply_writes_output(self, runner, workspace, facts_file, tmp_path):
        output = tmp_path / "updated.yml"

        result = runner.invoke(cli, ["-m", str(workspace), "apply", str(facts_file), "-o", str(output)])

        assert result.exit_code == 0
        assert "1 relationships created" in result.output
        updated = Model.load(output)
        assert updated.find("/Shop/Database").has_efferent_relationship_with(updated.find("/Shop/Web"))

    def test_dry_run(self, runner, workspace, facts_file):
        before = workspace.read_text()

        result = runner.invoke(cli, ["-m", str(workspace), "apply", str(facts_file), "--dry-run"])

        assert result.exit_code == 0
        assert workspace.read_text() == before

    def test_unknown_source(self, runner, workspace, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text(yaml.safe_dump({"facts": [{"source": "/Nowhere"}]}))

        result = runner.invoke(cli, ["-m", str(workspace), "apply", str(path)])

        assert result.exit_code == 1
        assert "Source element not found" in result.output

    def test_malformed_facts_file(self, runner, workspace, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("facts: [unclosed\n")

        result = runner.invoke(cli, ["-m", str(workspace), "apply", str(path)])

        assert result.exit_code == 1
        assert "Error:" in result.output
