import json
import logging

from hamcrest import assert_that, contains_string, has_properties, is_, none

from fhir_terminology.repos.terminology_registry import TerminologyRegistry, terminology_registry_factory
from tests.fixtures.builders.model.terminology_resources import (
    GENDER_SYSTEM,
    GENDER_VALUE_SET,
    gender_code_system,
    gender_value_set,
)


def test_add_value_set_and_code_system():
    registry = TerminologyRegistry()

    registry.add(gender_value_set())
    registry.add(gender_code_system())

    assert_that(registry.get_value_set(GENDER_VALUE_SET), has_properties(url=GENDER_VALUE_SET, version="4.0.1"))
    assert_that(registry.get_code_system(GENDER_SYSTEM).find("female"), has_properties(display="Female"))


def test_lookup_ignores_version_suffix():
    registry = TerminologyRegistry()
    registry.add(gender_value_set())

    assert_that(registry.get_value_set(f"{GENDER_VALUE_SET}|4.0.1"), has_properties(url=GENDER_VALUE_SET))


def test_unknown_urls_return_none():
    registry = TerminologyRegistry()

    assert_that(registry.get_value_set(GENDER_VALUE_SET), is_(none()))
    assert_that(registry.get_code_system(GENDER_SYSTEM), is_(none()))


def test_bundle_entries_are_unpacked():
    registry = TerminologyRegistry()

    registry.add(
        {
            "resourceType": "Bundle",
            "type": "collection",
            "entry": [{"resource": gender_value_set()}, {"resource": gender_code_system()}, {"fullUrl": "urn:x"}],
        }
    )

    assert_that(registry.get_value_set(GENDER_VALUE_SET), is_(has_properties(url=GENDER_VALUE_SET)))
    assert_that(registry.get_code_system(GENDER_SYSTEM), is_(has_properties(url=GENDER_SYSTEM)))


def test_other_resource_types_are_ignored():
    registry = TerminologyRegistry()

    registry.add({"resourceType": "StructureDefinition", "url": "http://example.org/sd"})

    assert_that(registry.get_value_set("http://example.org/sd"), is_(none()))


def test_load_directory_skips_unreadable_files(tmp_path, caplog):
    (tmp_path / "ValueSet-administrative-gender.json").write_text(json.dumps(gender_value_set()))
    (tmp_path / "CodeSystem-administrative-gender.json").write_text(json.dumps(gender_code_system()))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "list.json").write_text("[]")
    (tmp_path / "ValueSet-no-url.json").write_text(json.dumps({"resourceType": "ValueSet"}))
    (tmp_path / "notes.txt").write_text("ignored")
    registry = TerminologyRegistry()

    with caplog.at_level(logging.WARNING):
        registry.load_directory(tmp_path)

    assert_that(registry.get_value_set(GENDER_VALUE_SET), is_(has_properties(url=GENDER_VALUE_SET)))
    assert_that(registry.get_code_system(GENDER_SYSTEM), is_(has_properties(url=GENDER_SYSTEM)))
    assert_that(len(caplog.records), is_(3))
    assert_that(caplog.records[0].getMessage(), contains_string("ValueSet-no-url.json"))


def test_factory_loads_configured_directory(tmp_path):
    (tmp_path / "vs.json").write_text(json.dumps(gender_value_set()))

    registry = terminology_registry_factory(tmp_path)

    assert_that(registry.get_value_set(GENDER_VALUE_SET), is_(has_properties(url=GENDER_VALUE_SET)))


def test_factory_without_directory_is_empty():
    registry = terminology_registry_factory(None)

    assert_that(registry.get_value_set(GENDER_VALUE_SET), is_(none()))
