"""System checks for permission-matrix configuration."""

from django.core.checks import Error, register

from access_control.permissions import MatrixPermission
from access_control.resource_keys import RESOURCE_KEYS


def matrix_views() -> list[type]:
    """Views guarded by MatrixPermission."""

    # Import here to avoid circular imports at module load time.
    from audit.views import AuditLogViewSet
    from authentication.views import UserViewSet
    from sales.views import SaleViewSet

    return [AuditLogViewSet, SaleViewSet, UserViewSet]


def _declared_keys(view_cls) -> list[str]:
    keys = [getattr(view_cls, "resource_key", None)]
    keys.extend((getattr(view_cls, "action_resource_keys", None) or {}).values())
    return [key for key in keys if key]


@register()
def check_view_resource_keys(app_configs, **kwargs):
    """Ensure MatrixPermission views declare resource keys from the catalogue.

    A misspelled key would deny every role except creator, so it is reported
    at start-up instead.
    """
    errors: list[Error] = []

    for view_cls in matrix_views():
        permission_classes = getattr(view_cls, "permission_classes", [])
        if MatrixPermission not in permission_classes:
            continue
        declared = _declared_keys(view_cls)
        if not declared:
            errors.append(
                Error(
                    f"{view_cls.__name__} uses MatrixPermission but does not define resource_key.",
                    obj=view_cls,
                    id="access_control.E001",
                )
            )
        for key in declared:
            if key not in RESOURCE_KEYS:
                errors.append(
                    Error(
                        f"{view_cls.__name__} references unknown resource key {key!r}.",
                        hint="Add it to access_control.resource_keys.RESOURCE_KEYS or fix the typo.",
                        obj=view_cls,
                        id="access_control.E002",
                    )
                )

    return errors
