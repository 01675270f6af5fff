"""
Hierarchical permission tree, permission holders and their manager.

Permission paths are dot separated (``admin.roles.give``). A permit set on a
node applies to its whole subtree unless a deeper node overrides it; the
segment ``*`` stands for the node itself.
"""

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cordkit.storage import DataIO

logger = logging.getLogger(__name__)


class Permit(IntEnum):
    """Tri-state permission value."""

    NONE = 0
    ALLOW = 1
    DENY = -1


def _split(path: str | list[str]) -> list[str]:
    return path.split(".") if isinstance(path, str) else list(path)


class PermissionNode:
    """A node of the permission tree."""

    def __init__(self, name: str | None = None, parent: "PermissionNode | None" = None):
        self.name = name
        self.parent = parent
        self.permit = Permit.NONE
        self.children: dict[str, PermissionNode] = {}

    def clear(self) -> None:
        self.permit = Permit.NONE
        self.children.clear()

    def with_permit(self, permit: Permit) -> "PermissionNode":
        self.permit = permit
        return self

    def then(self, node: "PermissionNode") -> "PermissionNode":
        """Attach a child node."""
        self.children[node.name] = node
        node.parent = self
        return self

    def set(self, path: str | list[str], permit: Permit) -> "PermissionNode":
        """
        Set the permit at the given path, creating nodes as needed.

        Returns:
            The last node of the path
        """
        current = self
        for part in _split(path):
            if part == "*":
                continue
            child = current.children.get(part)
            if child is None:
                child = PermissionNode(part)
                current.then(child)
            current = child
        return current.with_permit(permit)

    def check(self, path: str | list[str], default: Permit = Permit.DENY) -> Permit:
        """
        Resolve the permit for a path.

        The deepest node along the path with a permit set wins; the default is
        returned when no node on the path has one.
        """
        result = default
        current: PermissionNode | None = self
        for part in _split(path):
            if current.permit != Permit.NONE:
                result = current.permit
            if part == "*":
                continue
            current = current.children.get(part)
            if current is None:
                break
        if current is not None and current.permit != Permit.NONE:
            result = current.permit
        return result

    def flatten(self) -> list[dict[str, Any]]:
        """Flatten the tree into ``{"name": path, "permit": value}`` entries."""
        flat: list[dict[str, Any]] = []
        self._flatten(flat, "*")
        return flat

    def _flatten(self, flat: list[dict[str, Any]], path: str) -> None:
        if self.permit != Permit.NONE:
            flat.append({"name": path, "permit": int(self.permit)})
        for child in self.children.values():
            child._flatten(flat, f"{path}.{child.name}")

    def unflatten(self, flat: list[dict[str, Any]]) -> None:
        for entry in flat:
            self.set(entry["name"], Permit(entry["permit"]))

    def __repr__(self) -> str:
        return f"PermissionNode({self.name!r}, {self.permit.name}, children={len(self.children)})"


def permit(name: str, value: Permit) -> PermissionNode:
    return PermissionNode(name).with_permit(value)


def allow(name: str) -> PermissionNode:
    return permit(name, Permit.ALLOW)


def deny(name: str) -> PermissionNode:
    return permit(name, Permit.DENY)


class Permissible(ABC):
    """Anything permissions can be checked against."""

    def __init__(self, manager: "PermissionManager | None" = None):
        self.manager = manager

    @abstractmethod
    def check(self, path: str | list[str], default: Permit = Permit.DENY) -> Permit:
        pass

    def invalidate_caches(self) -> None:
        """Drop cached state; called whenever the permissible changes."""
        pass


class GroupBasedPermissible(Permissible):
    """A permissible that only inherits from groups."""

    @abstractmethod
    def groups(self) -> list["PermissionGroup"]:
        pass

    def check(self, path: str | list[str], default: Permit = Permit.DENY) -> Permit:
        for group in self.groups():
            result = group.check(path, Permit.NONE)
            if result != Permit.NONE:
                return result
        return default


class PermissionObject(Permissible):
    """
    A holder of its own permissions plus an ordered list of inherited
    permissibles, highest priority first.
    """

    def __init__(self, manager: "PermissionManager | None" = None):
        super().__init__(manager)
        self.base_node = PermissionNode()
        self.inherits: list[Permissible] = []
        self.cache_node: PermissionNode | None = None

    @abstractmethod
    def id(self) -> str:
        pass

    def check(self, path: str | list[str], default: Permit = Permit.DENY) -> Permit:
        path = _split(path)
        result = self.base_node.check(path, Permit.NONE)
        if result != Permit.NONE:
            return result

        if self.cache_node is not None:
            result = self.cache_node.check(path, Permit.NONE)
            if result != Permit.NONE:
                return result

        for inherited in self.inherits:
            result = inherited.check(path, Permit.NONE)
            if result != Permit.NONE:
                if self.cache_node is not None:
                    self.cache_node.set(path, result)
                return result
        return default

    def set(self, path: str | list[str], value: Permit) -> "PermissionObject":
        self.base_node.set(path, value)
        self.invalidate_caches()
        return self

    def add_inherits(self, permissible: Permissible) -> "PermissionObject":
        self.inherits.append(permissible)
        self.invalidate_caches()
        return self

    def remove_inherits(self, permissible: Permissible) -> "PermissionObject":
        self.inherits.remove(permissible)
        self.invalidate_caches()
        return self

    def set_caching(self, enabled: bool) -> "PermissionObject":
        self.cache_node = PermissionNode() if enabled else None
        return self

    def save(self, data: dict[str, Any]) -> None:
        data["permissions"] = self.base_node.flatten()

    def load(self, data: dict[str, Any]) -> None:
        self.base_node.unflatten(data.get("permissions", []))
        self.invalidate_caches()

    def invalidate_caches(self) -> None:
        super().invalidate_caches()
        if self.cache_node is not None:
            self.cache_node.clear()


class PermissionGroup(PermissionObject):
    """A named permission holder others can inherit from."""

    def __init__(self, manager: "PermissionManager | None", name: str):
        super().__init__(manager)
        self.name = name

    def id(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class RoleBasedPermissionGroup(PermissionGroup):
    """A permission group applying to every member holding a platform role."""

    def __init__(
        self, manager: "PermissionManager | None", name: str, role_id: int | None = None
    ):
        super().__init__(manager, name)
        self.role_id = role_id

    def save(self, data: dict[str, Any]) -> None:
        super().save(data)
        data["roleId"] = self.role_id

    def load(self, data: dict[str, Any]) -> None:
        super().load(data)
        self.role_id = data.get("roleId")


def member_key(member: Any) -> str:
    return f"{member.guild.id}.{member.id}"


class MemberPermissible(GroupBasedPermissible):
    """Permissions of a guild member, taken from the groups of its roles."""

    def __init__(self, manager: "PermissionManager", member: Any):
        super().__init__(manager)
        self.member = member
        self._group_cache: list[PermissionGroup] | None = None

    def groups(self) -> list[PermissionGroup]:
        if self._group_cache is None:
            self._group_cache = [
                group
                for role in self.member.roles
                if (group := self.manager.groups_by_role.get(role.id)) is not None
            ]
        return self._group_cache

    def invalidate_caches(self) -> None:
        super().invalidate_caches()
        self._group_cache = None


class PermissionManager:
    """
    Registry of permission groups and per-member permissibles.

    Params:
        data_io: Persistence for the groups, optional
    """

    def __init__(self, data_io: "DataIO | None" = None):
        self.data_io = data_io
        self.groups: list[PermissionGroup] = []
        self.groups_by_name: dict[str, PermissionGroup] = {}
        self.groups_by_role: dict[Any, RoleBasedPermissionGroup] = {}
        self.member_cache: dict[str, MemberPermissible] = {}

    def register_group(self, group: PermissionGroup) -> None:
        """Register a group, replacing any group of the same name."""
        old = self.groups_by_name.get(group.id())
        if old is not None:
            self.groups.remove(old)
            if isinstance(old, RoleBasedPermissionGroup):
                self.groups_by_role.pop(old.role_id, None)

        self.groups.append(group)
        self.groups_by_name[group.id()] = group
        if isinstance(group, RoleBasedPermissionGroup) and group.role_id is not None:
            self.groups_by_role[group.role_id] = group
        for permissible in self.member_cache.values():
            permissible.invalidate_caches()

    def get_group(self, name: str) -> PermissionGroup | None:
        return self.groups_by_name.get(name)

    def for_member(self, member: Any) -> Permissible:
        """Get the cached permissible for a guild member."""
        key = member_key(member)
        permissible = self.member_cache.get(key)
        if permissible is None:
            permissible = self.member_cache[key] = MemberPermissible(self, member)
        return permissible

    def invalidate_member(self, member: Any) -> None:
        """Drop the cached groups of a member, for example after its roles changed."""
        permissible = self.member_cache.get(member_key(member))
        if permissible is not None:
            permissible.member = member
            permissible.invalidate_caches()

    def load_all_persistent_data(self) -> None:
        data = self.data_io.load() or {}
        for raw in data.get("groups", []):
            if raw.get("roleId") is not None:
                group = RoleBasedPermissionGroup(self, raw["name"])
            else:
                group = PermissionGroup(self, raw["name"])
            group.load(raw)
            self.register_group(group)
        logger.debug("Loaded %d permission groups", len(self.groups))

    def save_all_persistent_data(self) -> None:
        groups = []
        for group in self.groups:
            raw: dict[str, Any] = {"name": group.name}
            group.save(raw)
            groups.append(raw)
        self.data_io.save({"groups": groups})
