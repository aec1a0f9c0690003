from __future__ import annotations

import pytest  # type: ignore[import]

from link_position_interface.core.class_registry import CapabilityTable, TypeHierarchyRegistry


class KitBase:
    pass


class ArmKit(KitBase):
    pass


class GripperKit(ArmKit):
    pass


class UnregisteredKit(GripperKit):
    pass


@pytest.fixture
def registry():
    registry = TypeHierarchyRegistry(KitBase)
    registry.register(ArmKit)
    registry.register(GripperKit, ArmKit)
    return registry


def test_root_kind_is_its_own_super(registry):
    assert registry.id_of(KitBase) == 0
    assert registry.super_id_of(0) == 0


def test_register_assigns_sequential_ids(registry):
    assert registry.id_of(ArmKit) == 1
    assert registry.id_of(GripperKit) == 2
    assert registry.super_id_of(1) == 0
    assert registry.super_id_of(2) == 1
    assert registry.super_id_of(99) == -1


def test_register_again_keeps_id(registry):
    assert registry.register(ArmKit) == 1
    assert registry.register(GripperKit, KitBase) == 2
    assert registry.super_id_of(2) == 1
    assert registry.num_registered_kinds() == 3


def test_register_under_unknown_parent_raises(registry):
    with pytest.raises(ValueError):
        registry.register("tag", UnregisteredKit)
    assert registry.num_registered_kinds() == 3


def test_instances_resolve_through_exact_class(registry):
    assert registry.id_of(GripperKit()) == 2
    assert registry.id_of(UnregisteredKit()) == -1
    assert registry.id_of(UnregisteredKit, fallback=0) == 0
    assert registry.id_of([1, 2]) == -1


def test_is_a_walks_super_chain(registry):
    assert registry.is_a(2, 1)
    assert registry.is_a(2, 0)
    assert not registry.is_a(1, 2)
    assert not registry.is_a(-1, 0)


def test_plain_tags_can_be_registered():
    registry = TypeHierarchyRegistry("kit")
    assert registry.register("arm_kit", "kit") == 1
    assert registry.id_of("arm_kit") == 1


def test_capability_lookup_uses_nearest_binding(registry):
    table = CapabilityTable(registry)
    table.bind(ArmKit, "arm")

    assert table.lookup(GripperKit()) == "arm"
    assert table.lookup(ArmKit) == "arm"
    assert table.lookup(KitBase) is None

    table.bind(GripperKit, "gripper")
    assert table.lookup(GripperKit()) == "gripper"

    table.unbind(GripperKit)
    assert table.lookup(GripperKit()) == "arm"
    assert table.lookup(UnregisteredKit(), default="none") == "none"


def test_capability_bind_requires_registered_kind(registry):
    table = CapabilityTable(registry)
    with pytest.raises(ValueError):
        table.bind(UnregisteredKit, "x")
