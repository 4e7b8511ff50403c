from wicked.models.models import Page, PageVersion, Permission, PermissionGrant, User

__all__ = ["Page", "PageVersion", "Permission", "PermissionGrant", "User"]
