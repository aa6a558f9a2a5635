"""Authentication endpoints and user administration."""

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied
from rest_framework.response import Response

from access_control.evaluator import is_allowed
from access_control.gate import enforce_rank
from access_control.roles import Role
from access_control.permissions import MatrixPermission, request_role
from audit.models import AuditLog
from audit.recorder import record_event
from core.response import BaseAPIView, EnvelopeMixin, api_response
from .serializers import (
    AvailabilitySerializer,
    LoginSerializer,
    RefreshSerializer,
    SkillsSerializer,
    UserCreateSerializer,
    UserDetailSerializer,
    UserUpdateSerializer,
)
from .services import TokenService

User = get_user_model()

# Roles that may switch another user's availability on or off.
AVAILABILITY_MANAGER_ROLES = {"creator", "admin", "supervisor"}


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens; both outcomes are audited."""
        serializer = LoginSerializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed as exc:
            record_event(
                AuditLog.Category.ACCESS,
                "LOGIN_FAILED",
                severity=AuditLog.Severity.WARNING,
                metadata={"email": request.data.get("email"), "reason": str(exc.detail)},
            )
            raise
        user = serializer.validated_data["user"]
        access, refresh = TokenService.generate_tokens(user)
        record_event(AuditLog.Category.ACCESS, "LOGIN_SUCCESS", actor=user, metadata={"role": user.role})
        return api_response({"access": access, "refresh": refresh})


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a valid refresh token for new tokens; the old refresh token is revoked."""
        serializer = RefreshSerializer(data=request.data)
        if not serializer.is_valid():
            raise AuthenticationFailed("Refresh token required")

        _user, access, new_refresh = TokenService.rotate(serializer.validated_data["refresh"])
        return api_response({"access": access, "refresh": new_refresh})


class LogoutView(BaseAPIView):
    """Invalidate the current access token by blocklisting its jti."""

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token and return 204 No Content."""
        token = _get_bearer_token(request)
        if not token:
            raise AuthenticationFailed("Missing token")

        payload = TokenService.decode_token(token, expected_type="access")
        TokenService.revoke(payload)
        # 204 responses must not include a body.
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current user's profile."""
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")
        return api_response(UserDetailSerializer(request.user).data)


class UserViewSet(
    EnvelopeMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """User administration behind the users configuration tab."""

    queryset = User.objects.select_related("supervisor").order_by("email")
    permission_classes = [MatrixPermission]
    http_method_names = ["get", "post", "patch", "put", "head", "options"]
    resource_key = "tab:config.users"
    action_resource_keys = {
        # Self-service is checked inside the action.
        "availability": None,
        "skills": "config:manage_skills",
    }

    def get_serializer_class(self):
        if self.action == "create":
            return UserCreateSerializer
        if self.action in ("update", "partial_update"):
            return UserUpdateSerializer
        return UserDetailSerializer

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        _check_role_grant(request, serializer.validated_data.get("role") or Role.REPRESENTATIVE)
        user = serializer.save()
        record_event(
            AuditLog.Category.CONFIG,
            "USER_CREATED",
            actor=request.user,
            table_name=User._meta.db_table,
            record_id=user.pk,
            new_data={"email": user.email, "role": user.role},
        )
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        user = self.get_object()
        before = UserDetailSerializer(user).data
        serializer = UserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        new_role = serializer.validated_data.get("role")
        if new_role is not None and new_role != user.role:
            _check_role_grant(request, user.role, record_id=user.pk)
            _check_role_grant(request, new_role, record_id=user.pk)
        user = serializer.save()
        after = UserDetailSerializer(user).data
        changed = sorted(key for key in after if after[key] != before[key])
        if changed:
            record_event(
                AuditLog.Category.CONFIG,
                "USER_UPDATED",
                actor=request.user,
                table_name=User._meta.db_table,
                record_id=user.pk,
                old_data={key: _jsonable(before[key]) for key in changed},
                new_data={key: _jsonable(after[key]) for key in changed},
            )
        return api_response(after)

    @action(detail=True, methods=["patch"])
    def availability(self, request, pk=None):
        """Toggle whether a user receives auto-assigned sales.

        Users may toggle themselves when allowed ``feature:user_status_toggle``;
        admins, supervisors, and the creator may toggle anyone.
        """
        user = self.get_object()
        role = request_role(request)
        if user.pk == request.user.pk:
            if not is_allowed(role, "feature:user_status_toggle"):
                raise PermissionDenied("Cannot change your own status")
        elif role not in AVAILABILITY_MANAGER_ROLES:
            raise PermissionDenied("Cannot change status of another user")

        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user.is_active = serializer.validated_data["is_active"]
        user.save(update_fields=["is_active", "updated_at"])
        record_event(
            AuditLog.Category.ACCESS,
            "USER_AVAILABILITY_CHANGED",
            actor=request.user,
            table_name=User._meta.db_table,
            record_id=user.pk,
            new_data={"is_active": user.is_active},
        )
        return api_response(UserDetailSerializer(user).data)

    @action(detail=True, methods=["put"])
    def skills(self, request, pk=None):
        """Replace the product skills used to route sales to this user."""
        user = self.get_object()
        serializer = SkillsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        previous = list(user.skills or [])
        user.skills = serializer.validated_data["skills"]
        user.save(update_fields=["skills", "updated_at"])
        record_event(
            AuditLog.Category.CONFIG,
            "USER_SKILLS_UPDATED",
            actor=request.user,
            table_name=User._meta.db_table,
            record_id=user.pk,
            old_data={"skills": previous},
            new_data={"skills": user.skills},
        )
        return api_response(UserDetailSerializer(user).data)


def _check_role_grant(request, target_role, record_id=""):
    """Only roles strictly below the caller may be granted or taken away."""
    enforce_rank(
        request_role(request),
        target_role,
        actor=request.user,
        action="USER_ROLE_CHANGE_DENIED",
        table_name=User._meta.db_table,
        record_id=record_id,
    )


def _jsonable(value):
    if value is None or isinstance(value, (bool, int, float, str, list, dict)):
        return value
    return str(value)


def _get_bearer_token(request) -> str | None:
    """Extract the Bearer token from Authorization header if present."""
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None
