"""
Explicit "is-a" tables for dispatching on kinds of provider objects.

Kinds (classes or plain tags) are registered once, together with their
parent kind, while the owning module is being set up. Lookups then walk
the recorded super-id chain instead of inspecting types at run time.
"""

from typing import Any, Dict, Generic, Hashable, List, Optional, TypeVar

T = TypeVar("T")


class TypeHierarchyRegistry:
    """
    Append-only table assigning integer ids to a tree of kinds.

    The root kind is registered at construction and gets id 0; its super
    id is itself.

    Example:
        registry = TypeHierarchyRegistry(LinkKinematicsKitBase)
        registry.register(PlanarArmKinematicsKit)        # parent is the root
        registry.id_of(kit)                               # -> 1
    """

    def __init__(self, root_kind: Hashable):
        self._ids: Dict[Hashable, int] = {}
        self._super_ids: List[int] = []
        self._root_kind = root_kind
        self.register(root_kind, root_kind)

    @property
    def root_kind(self) -> Hashable:
        return self._root_kind

    def register(self, kind: Hashable, parent_kind: Optional[Hashable] = None) -> int:
        """
        Register a kind under its parent kind.

        Args:
            kind: Class or tag to register
            parent_kind: Already registered parent. The root kind when omitted.

        Returns:
            Id of the kind. Registering a known kind again returns its
            existing id and changes nothing.
        """
        known = self._ids.get(kind)
        if known is not None:
            return known
        if parent_kind is None:
            parent_kind = self._root_kind
        new_id = len(self._super_ids)
        if parent_kind == kind:
            super_id = new_id
        else:
            super_id = self._ids.get(parent_kind, -1)
            if super_id < 0:
                raise ValueError(f"Parent kind {parent_kind!r} of {kind!r} is not registered")
        self._ids[kind] = new_id
        self._super_ids.append(super_id)
        return new_id

    def id_of(self, kind_or_object: Any, fallback: int = -1) -> int:
        """
        Id of a registered kind. An unregistered object is looked up through
        its exact class.
        """
        try:
            found = self._ids.get(kind_or_object)
        except TypeError:
            found = None
        if found is None and not isinstance(kind_or_object, type):
            found = self._ids.get(type(kind_or_object))
        return fallback if found is None else found

    def super_id_of(self, id: int) -> int:
        if 0 <= id < len(self._super_ids):
            return self._super_ids[id]
        return -1

    def is_a(self, id: int, ancestor_id: int) -> bool:
        while id >= 0:
            if id == ancestor_id:
                return True
            super_id = self.super_id_of(id)
            if super_id == id:
                break
            id = super_id
        return False

    def num_registered_kinds(self) -> int:
        return len(self._super_ids)


class CapabilityTable(Generic[T]):
    """
    Values bound to kinds of a TypeHierarchyRegistry.

    lookup() returns the value bound to the nearest kind on the super-id
    chain, so a value bound to a parent kind also serves its descendants.
    """

    def __init__(self, registry: TypeHierarchyRegistry):
        self._registry = registry
        self._values: Dict[int, T] = {}

    @property
    def registry(self) -> TypeHierarchyRegistry:
        return self._registry

    def bind(self, kind: Hashable, value: T) -> None:
        id = self._registry.id_of(kind)
        if id < 0:
            raise ValueError(f"Kind {kind!r} is not registered")
        self._values[id] = value

    def unbind(self, kind: Hashable) -> None:
        self._values.pop(self._registry.id_of(kind), None)

    def lookup(self, kind_or_object: Any, default: Optional[T] = None) -> Optional[T]:
        id = self._registry.id_of(kind_or_object)
        while id >= 0:
            value = self._values.get(id)
            if value is not None:
                return value
            super_id = self._registry.super_id_of(id)
            if super_id == id:
                break
            id = super_id
        return default
