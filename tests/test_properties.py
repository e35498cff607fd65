import pytest

from srmigrate.core.models import MigrationRule
from srmigrate.core.properties import PropertyMap, fill_missing


def test_property_map_refuses_removal():
    props = PropertyMap({"replication_num": "3"})

    with pytest.raises(TypeError):
        del props["replication_num"]
    with pytest.raises(TypeError):
        props.pop("replication_num")
    assert dict(props) == {"replication_num": "3"}


def test_property_map_stores_strings_in_insertion_order():
    props = PropertyMap()
    props["b"] = 2
    props["a"] = "x"
    props["b"] = 3

    assert list(props.items()) == [("b", "3"), ("a", "x")]


def test_property_map_copy_is_detached():
    props = PropertyMap({"a": "1"})
    snapshot = props.copy()
    props["b"] = "2"

    assert snapshot == {"a": "1"}


def test_fill_missing_keeps_user_values():
    props = PropertyMap({"dynamic_partition.end": "7"})

    added = fill_missing(props, {"dynamic_partition.enable": "true", "dynamic_partition.end": "3"})

    assert added == ["dynamic_partition.enable"]
    assert props["dynamic_partition.end"] == "7"


def test_rules_do_not_share_property_maps():
    first = MigrationRule(seq="1", catalog_pattern=".*", table_pattern=".*")
    second = MigrationRule(seq="2", catalog_pattern=".*", table_pattern=".*")
    first.properties["storage_medium"] = "SSD"

    assert "storage_medium" not in second.properties
