import dataclasses

import pytest

from covfuzz.errors import ConfigValidationError
from covfuzz.nodes import NodeKind, TypeNode, validate_nodes


def test_describe_nested_type():
    node = TypeNode.list_(
        TypeNode.dict_(TypeNode.int_([1], [1]), TypeNode.bool_([0], [1]), [1], [1]),
        [0, 1], [2],
    )
    assert node.describe() == "list(dict(int:bool))"
    assert TypeNode.str_("cab", [1], [1]).describe() == "str(abc)"


def test_nodes_are_immutable_and_hashable():
    node = TypeNode.int_([1, 2], range(0, 3))
    assert node.random_domain == (0, 1, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.exhaustive_domain = (5,)
    assert hash(node) == hash(TypeNode.int_([1, 2], [0, 1, 2]))


def test_children_by_role():
    key, value = TypeNode.int_([1], [1]), TypeNode.float_([1.5], [2.5])
    node = TypeNode.dict_(key, value, [1], [1])
    assert node.kind is NodeKind.DICT
    assert node.key is key
    assert node.children() == [("key", key), ("value", value)]
    assert TypeNode.int_([1], [1]).children() == []


def test_valid_schema_passes():
    validate_nodes([
        TypeNode.int_([1, 2, 3], range(0, 11)),
        TypeNode.set_(TypeNode.tuple_(TypeNode.str_("ab", [1], [2]), [2], [1]), [0, 1], [2]),
        TypeNode.dict_(TypeNode.str_("xy", [1], [1]), TypeNode.list_(TypeNode.bool_([0, 1], [1]), [1], [2]),
                       [1], [0, 2]),
    ])


@pytest.mark.parametrize("node, path", [
    (TypeNode.int_([], [1]), "args[0].exhaustive_domain"),
    (TypeNode.int_([1], []), "args[0].random_domain"),
    (TypeNode.bool_([0, 2], [1]), "args[0].exhaustive_domain"),
    (TypeNode.list_(TypeNode.int_([1], [1]), [-1], [1]), "args[0].exhaustive_domain"),
    (TypeNode.str_("ab", [1], [1.5]), "args[0].random_domain"),
    (TypeNode.int_(["a"], [1]), "args[0].exhaustive_domain"),
    (TypeNode.list_(TypeNode.bool_([3], [1]), [1], [1]), "args[0].elem.exhaustive_domain"),
])
def test_invalid_domains_report_node_path(node, path):
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_nodes([node])
    assert excinfo.value.path == path


def test_unhashable_set_elements_rejected():
    node = TypeNode.set_(TypeNode.list_(TypeNode.int_([1], [1]), [1], [1]), [1], [1])
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_nodes([TypeNode.int_([1], [1]), node])
    assert excinfo.value.path == "args[1].elem"
    assert "hashable" in excinfo.value.constraint


def test_unhashable_dict_keys_rejected():
    node = TypeNode.dict_(TypeNode.set_(TypeNode.int_([1], [1]), [1], [1]), TypeNode.int_([1], [1]), [1], [1])
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_nodes([node])
    assert excinfo.value.path == "args[0].key"


def test_empty_charset_rejected():
    with pytest.raises(ConfigValidationError):
        validate_nodes([TypeNode.str_("", [1], [1])])


def test_missing_child_rejected():
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_nodes([TypeNode(NodeKind.LIST, (1,), (1,))])
    assert excinfo.value.path == "args[0].elem"
