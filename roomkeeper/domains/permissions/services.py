from typing import List, Union

from roomkeeper.domains.permissions.entities import Action, PermissionLevel


class PermissionPolicy:
    """Pure permission rules: ordering, ceilings and the history lock"""

    @staticmethod
    def parse(value: Union[str, PermissionLevel]) -> PermissionLevel:
        """Parse a wire value into a PermissionLevel, rejecting anything unknown"""
        if isinstance(value, PermissionLevel):
            return value
        try:
            return PermissionLevel(value)
        except ValueError:
            raise ValueError(f"Invalid permission value: {value!r}")

    @staticmethod
    def compare(a: PermissionLevel, b: PermissionLevel) -> int:
        """1 if a > b, 0 if equal, -1 if a < b"""
        if a.rank > b.rank:
            return 1
        if a.rank < b.rank:
            return -1
        return 0

    @staticmethod
    def effective_level(requested: PermissionLevel, ceiling: PermissionLevel) -> PermissionLevel:
        """Clamp the requested level to the owner's ceiling"""
        if PermissionPolicy.compare(requested, ceiling) <= 0:
            return requested
        return ceiling

    @staticmethod
    def allowed_levels_under_history_lock() -> List[PermissionLevel]:
        # Editor is excluded whenever history is locked, whatever the ceiling
        return [PermissionLevel.VIEWER, PermissionLevel.ASSIST]

    @staticmethod
    def available_levels(max_permission: PermissionLevel, history_locked: bool = False) -> List[PermissionLevel]:
        """Levels the owner may pick as the room default"""
        levels = [level for level in PermissionLevel if level.rank <= max_permission.rank]
        if history_locked:
            allowed = PermissionPolicy.allowed_levels_under_history_lock()
            levels = [level for level in levels if level in allowed]
        return levels

    @staticmethod
    def constrain(level: PermissionLevel, ceiling: PermissionLevel, history_locked: bool) -> PermissionLevel:
        """Apply the ceiling, then the history-lock restriction"""
        effective = PermissionPolicy.effective_level(level, ceiling)
        if history_locked and effective not in PermissionPolicy.allowed_levels_under_history_lock():
            allowed = [
                candidate
                for candidate in PermissionPolicy.allowed_levels_under_history_lock()
                if candidate.rank <= effective.rank
            ]
            effective = max(allowed, key=lambda candidate: candidate.rank)
        return effective

    @staticmethod
    def can_perform(level: PermissionLevel, action: Action, history_locked: bool) -> bool:
        if action == Action.VIEW:
            return True
        if action == Action.EDIT_NEW:
            return level in (PermissionLevel.ASSIST, PermissionLevel.EDITOR)
        if action == Action.EDIT_HISTORY:
            return level == PermissionLevel.EDITOR and not history_locked
        return False
