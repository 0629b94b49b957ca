"""Principal of the current request.

Login is handled by an authenticating reverse proxy in front of this
service, which passes the user name and groups in trusted headers. The
resulting :class:`AuthorizationContext` is handed explicitly to everything
that makes authorization decisions.
"""

from __future__ import annotations

import dataclasses

import fastapi

from viewer_api.core import config

GROUP_ANONYMOUS = "anonymous"
GROUP_AUTHENTICATED = "authenticated"
GROUP_ADMIN = "admin"


@dataclasses.dataclass(frozen=True)
class AuthorizationContext:
    """The user a request is made for.

    Attributes:
        username: Name of the logged-in user, None for anonymous requests.
        groups: Groups the user is a member of, as provided by the login
            mechanism.
    """

    username: str | None = None
    groups: frozenset[str] = frozenset()

    @classmethod
    def anonymous(cls) -> AuthorizationContext:
        return cls()

    @property
    def authenticated(self) -> bool:
        return self.username is not None

    def effective_groups(self) -> frozenset[str]:
        """Groups to check authorization rules against.

        Everyone is a member of ``anonymous``; logged-in users are also
        members of ``authenticated`` and their own groups.
        """
        if not self.authenticated:
            return frozenset({GROUP_ANONYMOUS})
        return self.groups | {GROUP_ANONYMOUS, GROUP_AUTHENTICATED}


def get_authorization_context(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> AuthorizationContext:
    """Build the authorization context from the trusted proxy headers.

    Args:
        request: Incoming request.
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        Context for the logged-in user, or an anonymous context when the
        user header is absent or empty.
    """
    username = request.headers.get(settings.auth_user_header, "").strip()
    if not username:
        return AuthorizationContext.anonymous()
    groups_header = request.headers.get(settings.auth_groups_header, "")
    groups = frozenset(g.strip() for g in groups_header.split(",") if g.strip())
    return AuthorizationContext(username=username, groups=groups)
