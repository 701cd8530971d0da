"""Tests for the model: relationships, lookup, validation and serialization."""

import logging

import pytest
import yaml
from pydantic import ValidationError

from c4link.core.deployment import ContainerInstance
from c4link.core.model import Model, ResolutionError
from c4link.core.schema import InteractionStyle
from c4link.core.tags import Tags


@pytest.fixture
def model():
    """A deployed shop: customer -> web -> database, one live server."""
    model = Model()
    customer = model.add_person("Customer", "Buys things")
    shop = model.add_software_system("Shop", "Online shop")
    web = shop.add_container("Web", "Storefront", "Python")
    database = shop.add_container("Database", "Orders", "PostgreSQL")
    web.add_component("Checkout", "Takes payments")

    customer.uses(web, "Browses", "HTTPS")
    web.uses(database, "Reads from and writes to", "SQL")

    server = model.add_deployment_node("Server", "Application server", "Ubuntu", environment="Live")
    docker = server.add_deployment_node("Docker", technology="Docker")
    web_1 = docker.add(web)
    docker.add(database)
    web_1.add_health_check("ping", "https://shop.example.com/health", 30, 500)
    return model


@pytest.fixture
def sample_model_data():
    """External representation with an unresolvable container reference."""
    return {
        "softwareSystems": [
            {
                "id": "1",
                "name": "Shop",
                "tags": "Element,Software System,External",
                "containers": [
                    {"id": "2", "name": "Web", "technology": "Python", "tags": "Element,Container"},
                ],
            }
        ],
        "deploymentNodes": [
            {
                "id": "3",
                "name": "Server",
                "environment": "Live",
                "containerInstances": [
                    {"id": "4", "containerId": "2", "instanceId": 1, "tags": "Container Instance"},
                    {
                        "id": "5",
                        "containerId": "99",
                        "instanceId": 1,
                        "healthChecks": [{"name": "ping", "url": "http://x/health"}],
                    },
                ],
            }
        ],
        "relationships": [
            {"id": "6", "sourceId": "4", "destinationId": "5", "description": "Calls"},
        ],
    }


class TestRelationships:
    """Relationship creation through the model."""

    def test_uses_creates_relationship(self, model):
        customer = model.get_person_with_name("Customer")
        web = model.find("/Shop/Web")

        relationship = customer.get_efferent_relationship_with(web)

        assert relationship is not None
        assert relationship.description == "Browses"
        assert relationship.technology == "HTTPS"
        assert relationship.interaction_style == InteractionStyle.SYNCHRONOUS
        assert relationship.tags == [Tags.RELATIONSHIP, Tags.SYNCHRONOUS]
        assert customer.has_efferent_relationship_with(web)

    def test_none_destination(self, model):
        shop = model.get_software_system_with_name("Shop")
        before = len(model.relationships)

        with pytest.raises(ValueError, match="destination of a relationship must be specified"):
            shop.uses(None, "d", "t")
        with pytest.raises(ValueError, match="destination"):
            model.add_relationship(shop, None)

        assert len(model.relationships) == before

    def test_none_source(self, model):
        shop = model.get_software_system_with_name("Shop")
        with pytest.raises(ValueError, match="source of a relationship must be specified"):
            model.add_relationship(None, shop)

    def test_duplicate_returns_none(self, model):
        customer = model.get_person_with_name("Customer")
        web = model.find("/Shop/Web")
        before = len(model.relationships)

        assert customer.uses(web, "Browses", "HTTPS") is None
        assert customer.uses(web, "Buys from") is not None
        assert len(model.relationships) == before + 1

    def test_foreign_destination_rejected(self, model):
        other = Model().add_software_system("Elsewhere")
        with pytest.raises(ValueError, match="does not belong to this model"):
            model.get_software_system_with_name("Shop").uses(other, "Calls")

    def test_ids_shared_with_elements(self, model):
        element_ids = {e.id for e in model}
        relationship_ids = {r.id for r in model.relationships}

        assert element_ids.isdisjoint(relationship_ids)

    def test_change_interaction_style(self, model):
        relationship = model.relationships[0]

        relationship.interaction_style = InteractionStyle.ASYNCHRONOUS

        assert not relationship.is_synchronous
        assert relationship.tags == [Tags.RELATIONSHIP, Tags.ASYNCHRONOUS]

    def test_relationships_from_and_to(self, model):
        web = model.find("/Shop/Web")
        database = model.find("/Shop/Database")

        assert [r.destination for r in model.relationships_from(web)] == [database]
        assert [r.source.name for r in model.relationships_to(web)] == ["Customer"]
        assert web.relationships == model.relationships_from(web)

    def test_replicated_instance_relationship(self, model):
        web_1 = model.find("/Shop/Web[1]")
        db_1 = model.find("/Shop/Database[1]")

        [replica] = model.relationships_between(web_1, db_1)
        container_relationship = model.find("/Shop/Web").get_efferent_relationship_with(
            model.find("/Shop/Database")
        )

        assert replica.linked_relationship_id == container_relationship.id


class TestLookup:
    """Element lookup."""

    def test_find_by_id(self, model):
        assert model.find("1") is model.get_person_with_name("Customer")

    def test_find_by_canonical_name(self, model):
        assert model.find("/Shop/Web/Checkout").name == "Checkout"
        assert model.find("/Deployment/Live/Server/Docker").technology == "Docker"

    def test_find_by_name(self, model):
        assert model.find("Shop") is model.get_software_system_with_name("Shop")
        assert model.find("Customer") is model.get_person_with_name("Customer")
        assert model.find("nonexistent") is None

    def test_contains(self, model):
        assert "Shop" in model
        assert "/Shop/Web" in model
        assert model.find("/Shop/Web") in model
        assert "nonexistent" not in model

    def test_children_and_parents(self, model):
        shop = model.get_software_system_with_name("Shop")
        web = model.find("/Shop/Web")

        assert model.parent_of(web) is shop
        assert [c.name for c in model.children_of(shop)] == ["Web", "Database"]

    def test_deployment_queries(self, model):
        assert [n.name for n in model.deployment_nodes()] == ["Server"]
        assert model.deployment_nodes("Staging") == []
        assert model.environments() == {"Live"}
        assert len(model.container_instances("Live")) == 2
        assert model.container_instances("Staging") == []

    def test_len(self, model):
        # person, system, 2 containers, component, 2 nodes, 2 instances
        assert len(model) == 9


class TestValidation:
    """Structural validation."""

    def test_valid_model(self, model):
        assert model.validate() == []

    def test_unresolved_container(self, sample_model_data):
        model = Model.from_dict(sample_model_data)

        errors = model.validate()

        assert errors == ["Container instance 5: container not found: 99"]

    def test_duplicate_canonical_names(self):
        model = Model.from_dict(
            {
                "softwareSystems": [
                    {"id": "1", "name": "Shop"},
                    {"id": "2", "name": "Shop"},
                ]
            }
        )

        assert model.validate() == ["Duplicate canonical name: /Shop (2 elements)"]


class TestSerialization:
    """External representation."""

    def test_round_trip(self, model):
        data = model.to_dict()
        restored = Model.from_dict(data)

        assert len(restored) == len(model)
        assert len(restored.relationships) == len(model.relationships)
        for element in model:
            copy = restored.get_element(element.id)
            assert type(copy) is type(element)
            assert copy.canonical_name == element.canonical_name
            assert copy.tags == element.tags
        assert restored.to_dict() == data

    def test_derived_fields_not_written(self, model):
        text = yaml.safe_dump(model.to_dict())

        assert "canonical" not in text.lower()
        instance = model.to_dict()["deploymentNodes"][0]["children"][0]["containerInstances"][0]
        assert "name" not in instance
        assert "container" not in instance
        assert instance["containerId"] == model.find("/Shop/Web").id
        assert instance["instanceId"] == 1
        assert instance["healthChecks"] == [
            {"name": "ping", "url": "https://shop.example.com/health", "interval": 30, "timeout": 500}
        ]

    def test_tags_written_as_string(self, model):
        data = model.to_dict()
        assert data["people"][0]["tags"] == "Element,Person"
        assert data["relationships"][0]["tags"] == "Relationship,Synchronous"
        assert data["relationships"][0]["interactionStyle"] == "Synchronous"

    def test_from_dict(self, sample_model_data):
        model = Model.from_dict(sample_model_data)

        shop = model.get_element("1")
        assert shop.tags == [Tags.ELEMENT, Tags.SOFTWARE_SYSTEM, "External"]

        resolved = model.get_element("4")
        assert isinstance(resolved, ContainerInstance)
        assert resolved.container is model.get_element("2")
        assert resolved.deployment_node is model.get_element("3")

    def test_unresolved_container_falls_back(self, sample_model_data, caplog):
        with caplog.at_level(logging.WARNING, logger="c4link.core.model"):
            model = Model.from_dict(sample_model_data)

        unresolved = model.get_element("5")
        assert unresolved.container is None
        assert unresolved.container_id == "99"
        assert len(unresolved.health_checks) == 1
        assert "could not be resolved" in caplog.text

    def test_new_ids_continue_after_loaded_ones(self, sample_model_data):
        model = Model.from_dict(sample_model_data)
        system = model.add_software_system("Warehouse")
        assert system.id == "7"

    def test_unknown_relationship_endpoint(self, sample_model_data):
        sample_model_data["relationships"][0]["destinationId"] = "404"
        with pytest.raises(ResolutionError, match="404"):
            Model.from_dict(sample_model_data)

    def test_duplicate_ids(self, sample_model_data):
        sample_model_data["relationships"][0]["id"] = "1"
        with pytest.raises(ValueError, match="already exists"):
            Model.from_dict(sample_model_data)

    def test_invalid_document(self):
        with pytest.raises(ValidationError):
            Model.from_dict({"deploymentNodes": [{"id": "1", "name": "Node", "instances": 0}]})

    def test_save_and_load(self, model, tmp_path):
        path = tmp_path / "workspace.yml"
        model.save(path)

        loaded = Model.load(path)

        assert loaded.to_dict() == model.to_dict()
        assert loaded.find("/Shop/Web[1]").health_checks == model.find("/Shop/Web[1]").health_checks

    @pytest.mark.parametrize(
        "check",
        [
            {"name": "", "url": "http://x/health"},
            {"name": "ping", "url": "not a url"},
            {"name": "ping", "url": ""},
        ],
    )
    def test_invalid_health_check_rejected(self, sample_model_data, check):
        sample_model_data["deploymentNodes"][0]["containerInstances"][1]["healthChecks"] = [check]
        with pytest.raises(ValidationError):
            Model.from_dict(sample_model_data)

    def test_instance_numbers_count_loaded_instances(self):
        model = Model.from_dict(
            {
                "softwareSystems": [
                    {"id": "1", "name": "Shop", "containers": [{"id": "2", "name": "Web"}]},
                ],
                "deploymentNodes": [
                    {
                        "id": "3",
                        "name": "Server",
                        "containerInstances": [
                            {"id": "4", "containerId": "2", "instanceId": 1},
                            {"id": "5", "containerId": "2", "instanceId": 3},
                        ],
                    }
                ],
            }
        )

        instance = model.get_element("3").add(model.get_element("2"))

        assert instance.instance_id == 3
