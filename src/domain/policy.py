from collections.abc import Sequence
from typing import Any

from src.domain.entities import User
from src.rules.models import AbacRule, Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(
        self,
        user: User | None,
        user_roles: Sequence[str],
        action: str,
        resource: Any = None,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """
        Check if the user/role is allowed to perform the action on the resource.

        Order of precedence:
        1. Public Permissions (Global)
        2. Role-Based Access Control (RBAC)
        3. Attribute-Based Access Control (ABAC)
        """
        context = context or {}

        # 1. Public Permissions
        if action in self.rules.rbac.public_permissions:
            return True

        # If not public, we need an active user
        if not user or user.status != "active":
            return False

        # 2. RBAC
        for role in user_roles:
            allowed_actions = self.rules.rbac.roles.get(role, [])
            if "*" in allowed_actions:
                return True
            if action in allowed_actions:
                return True

            # Scoped wildcards (e.g. "engagement:*" matches "engagement:toggle")
            if ":" in action:
                scope = action.split(":")[0]
                if f"{scope}:*" in allowed_actions:
                    return True

        # 3. ABAC
        if resource is not None:
            rules: list[AbacRule] = [
                *self.rules.abac.article_rules,
                *self.rules.abac.comment_rules,
            ]
            for rule in rules:
                if action not in rule.allow:
                    continue
                if self._evaluate_rule(rule.if_condition, user, user_roles, resource, context):
                    return True

        return False

    def _evaluate_rule(
        self,
        condition: dict[str, Any],
        user: User,
        user_roles: Sequence[str],
        resource: Any,
        context: dict[str, Any],
    ) -> bool:
        """
        Evaluate condition predicates from rules.yaml.
        Supported predicates:
        - role_in: list[str]
        - is_author: bool (resource.author_user_id matches the user)
        """
        for predicate, args in condition.items():
            if predicate == "role_in":
                if not set(user_roles).intersection(set(args)):
                    return False

            elif predicate == "is_author":
                if args:
                    author_id = getattr(resource, "author_user_id", None)
                    if author_id is None or str(author_id) != str(user.id):
                        return False

            else:
                # Unknown predicates never grant access
                return False

        return True

    def is_allowed(self, user: User | None, action: str, resource: Any = None) -> bool:
        roles = list(user.roles) if user else []
        return self.check_permission(user, roles, action, resource=resource)
