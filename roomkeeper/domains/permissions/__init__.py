from roomkeeper.domains.permissions.entities import Action, PermissionLevel, PERMISSION_DESCRIPTIONS
from roomkeeper.domains.permissions.services import PermissionPolicy

__all__ = [
    "Action", "PermissionLevel", "PERMISSION_DESCRIPTIONS",
    "PermissionPolicy"
]
