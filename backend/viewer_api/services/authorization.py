"""Authorization rules for applications, geo services and layers.

Every application, service and (optionally) service layer carries a list of
authorization rules. A rule grants or denies a group ``read`` access. For a
given user, the rules whose group the user is a member of are checked in
order: the first one allowing access decides, and when matching rules exist
but none allows, access is denied. When no rule matches there is no decision.
Members of the ``admin`` group are allowed everything.

Decisions are always made for an explicit
:class:`~viewer_api.core.security.AuthorizationContext`.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Protocol

from viewer_api.core import security
from viewer_api.db import models as db_models

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

ACCESS_TYPE_READ = "read"


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    UNDECIDED = "undecided"


class AuthorizationOracle(Protocol):
    """Answers whether the current user may see services and layers."""

    def may_view_service(self, service: db_models.GeoService) -> bool: ...

    def may_view_layer(
        self, service: db_models.GeoService, layer: db_models.GeoServiceLayer
    ) -> bool: ...

    def must_deny_secured_proxy(self, service: db_models.GeoService) -> bool: ...


def decide(
    rules: Iterable[db_models.AuthorizationRule],
    context: security.AuthorizationContext,
) -> Decision:
    """Evaluate authorization rules for ``read`` access.

    Args:
        rules: Rules in order of evaluation.
        context: The user to decide for.

    Returns:
        ALLOW, DENY, or UNDECIDED when no rule applies to the user's groups
        or the first applicable rule has no ``read`` decision.
    """
    groups = context.effective_groups()
    if security.GROUP_ADMIN in groups:
        return Decision.ALLOW

    has_matching_rule = False
    for rule in rules:
        if rule.group_name not in groups:
            continue
        has_matching_rule = True
        value = rule.decisions.get(ACCESS_TYPE_READ)
        if value is None:
            return Decision.UNDECIDED
        if value == db_models.AuthorizationRuleDecision.ALLOW:
            return Decision.ALLOW

    if has_matching_rule:
        return Decision.DENY
    return Decision.UNDECIDED


def merge_rules(
    service_rules: Iterable[db_models.AuthorizationRule],
    layer_rules: Iterable[db_models.AuthorizationRule],
) -> list[db_models.AuthorizationRule]:
    """Combine service and layer rules; layer rules replace same-group rules."""
    layer_rules = list(layer_rules)
    layer_groups = {rule.group_name for rule in layer_rules}
    return [r for r in service_rules if r.group_name not in layer_groups] + layer_rules


def is_public(application: db_models.Application) -> bool:
    """Whether anonymous users are allowed to read the application."""
    return any(
        rule.group_name == security.GROUP_ANONYMOUS
        and rule.decisions.get(ACCESS_TYPE_READ)
        == db_models.AuthorizationRuleDecision.ALLOW
        for rule in application.authorization_rules
    )


def may_view_application(
    application: db_models.Application,
    context: security.AuthorizationContext,
) -> bool:
    allowed = decide(application.authorization_rules, context) == Decision.ALLOW
    logger.debug(
        "User %s is%s allowed to view application %s",
        context.username,
        "" if allowed else " not",
        application.name,
    )
    return allowed


class RuleAuthorizationOracle(AuthorizationOracle):
    """Authorization oracle for one user viewing one application."""

    def __init__(
        self,
        context: security.AuthorizationContext,
        application: db_models.Application,
    ) -> None:
        self.context = context
        self.application = application

    def may_view_service(self, service: db_models.GeoService) -> bool:
        return decide(service.authorization_rules, self.context) == Decision.ALLOW

    def may_view_layer(
        self, service: db_models.GeoService, layer: db_models.GeoServiceLayer
    ) -> bool:
        """Whether the user may view a layer of a service.

        Layer rules, when configured, override service rules for the same
        group. An explicit denial of the service cannot be overridden by a
        layer rule.
        """
        service_decision = decide(service.authorization_rules, self.context)
        if service_decision == Decision.DENY:
            return False

        layer_settings = (
            service.layer_settings(layer.name) if layer.name is not None else None
        )
        if layer_settings is not None and layer_settings.authorization_rules:
            combined = merge_rules(
                service.authorization_rules, layer_settings.authorization_rules
            )
            return decide(combined, self.context) == Decision.ALLOW

        return service_decision == Decision.ALLOW

    def must_deny_secured_proxy(self, service: db_models.GeoService) -> bool:
        """Whether a proxied service with credentials must be hidden.

        Proxying a service that needs credentials would hand its data to
        everyone who can open a public application, so such services are
        left out of public applications, even for logged-in users.
        """
        return (
            service.settings.use_proxy
            and service.authentication is not None
            and is_public(self.application)
        )
