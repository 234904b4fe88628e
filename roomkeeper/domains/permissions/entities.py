from enum import Enum


class PermissionLevel(str, Enum):
    """Capability tier granted to room accessors, ordered viewer < assist < editor"""
    VIEWER = "viewer"
    ASSIST = "assist"
    EDITOR = "editor"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    PermissionLevel.VIEWER: 0,
    PermissionLevel.ASSIST: 1,
    PermissionLevel.EDITOR: 2,
}


class Action(str, Enum):
    """Things a requester may attempt on a room's content"""
    VIEW = "view"
    EDIT_NEW = "edit_new"          # add content
    EDIT_HISTORY = "edit_history"  # change content that existed before the history lock


PERMISSION_DESCRIPTIONS = {
    PermissionLevel.VIEWER: "Viewer - read only",
    PermissionLevel.ASSIST: "Assist - may add new content, may not change history",
    PermissionLevel.EDITOR: "Editor - may change all content",
}
