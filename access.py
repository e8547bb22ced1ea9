"""
Access control for the Team Corner lists.

An access rule takes the request's AuthContext and returns a Decision:

- Denied: the operation is rejected.
- AllowAll: the operation applies to every record of the list.
- AllowFiltered: the operation applies only to records matching the filter
  (owner scoping). A filter is never a plain "yes".

Lists declare one rule per operation in a ListAccess; individual fields can
override the update rule with a FieldAccess.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from exceptions import AuthorizationDenied

logger = logging.getLogger(__name__)

Operation = Literal["read", "create", "update", "delete"]
OPERATIONS = ("read", "create", "update", "delete")


# -----------------------------
# Authentication context
# -----------------------------

class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="User id (stringified ObjectId)")
    is_admin: bool = False
    is_member: bool = False


class AuthContext(BaseModel):
    """Who is making the request. `item` is None for anonymous requests."""

    model_config = ConfigDict(frozen=True)

    item: Optional[Identity] = None

    @property
    def is_authenticated(self) -> bool:
        return self.item is not None


ANONYMOUS = AuthContext()


# -----------------------------
# Decisions
# -----------------------------

class Denied(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["denied"] = "denied"


class AllowAll(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["allow_all"] = "allow_all"


class AllowFiltered(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["allow_filtered"] = "allow_filtered"
    filter: Dict[str, str]

    def matches(self, record: Mapping[str, Any]) -> bool:
        """True if a serialized record (with an `id` key) satisfies the filter."""
        for key, value in self.filter.items():
            if key not in record or str(record[key]) != value:
                return False
        return True


Decision = Union[Denied, AllowAll, AllowFiltered]
AccessRule = Callable[[AuthContext], Decision]

DENIED = Denied()
ALLOW_ALL = AllowAll()


# -----------------------------
# Predicates
# -----------------------------

def is_admin(ctx: AuthContext) -> bool:
    return bool(ctx.item and ctx.item.is_admin)


def is_member(ctx: AuthContext) -> bool:
    return bool(ctx.item and ctx.item.is_member)


def owner_scoped(rule: AccessRule) -> AccessRule:
    """Mark a rule whose grants are limited to the caller's own records."""
    rule.owner_scoped = True
    return rule


@owner_scoped
def owns_item(ctx: AuthContext) -> Decision:
    """Scope to records whose id is the requesting user's id."""
    if ctx.item is None:
        return DENIED
    return AllowFiltered(filter={"id": ctx.item.id})


@owner_scoped
def is_admin_or_owner(ctx: AuthContext) -> Decision:
    if is_admin(ctx):
        return ALLOW_ALL
    return owns_item(ctx)


def allow_if(predicate: Callable[[AuthContext], bool]) -> AccessRule:
    """Turn a boolean predicate into an access rule."""

    def rule(ctx: AuthContext) -> Decision:
        return ALLOW_ALL if predicate(ctx) else DENIED

    rule.__name__ = predicate.__name__
    return rule


def deny_all(ctx: AuthContext) -> Decision:
    return DENIED


# -----------------------------
# Policies
# -----------------------------

@dataclass(frozen=True)
class FieldAccess:
    # None means the list-level rule applies
    update: Optional[AccessRule] = None


@dataclass(frozen=True)
class ListAccess:
    read: AccessRule = deny_all
    create: AccessRule = deny_all
    update: AccessRule = deny_all
    delete: AccessRule = deny_all
    fields: Mapping[str, FieldAccess] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def rule_for(self, operation: str) -> AccessRule:
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")
        return getattr(self, operation)

    def is_owner_scoped(self, operation: str) -> bool:
        return getattr(self.rule_for(operation), "owner_scoped", False)

    def describe(self) -> Dict[str, Any]:
        """Rule names per operation, for schema introspection."""
        summary: Dict[str, Any] = {op: self.rule_for(op).__name__ for op in OPERATIONS}
        if self.fields:
            summary["fields"] = {
                name: {"update": fa.update.__name__ if fa.update else None}
                for name, fa in self.fields.items()
            }
        return summary


def authorize(
    access: ListAccess,
    operation: str,
    ctx: AuthContext,
    record: Optional[Mapping[str, Any]] = None,
    fields: Iterable[str] = (),
    list_key: Optional[str] = None,
) -> Decision:
    """Evaluate the list rule and any field overrides for one operation.

    Returns the list-level decision so callers can scope queries with it.
    Raises AuthorizationDenied when the rule denies, when a filtered
    decision does not cover `record`, or when a field override denies.
    """
    decision = access.rule_for(operation)(ctx)
    who = ctx.item.id if ctx.item else "anonymous"

    if isinstance(decision, Denied):
        logger.warning(f"Denied {operation} on {list_key or 'list'} for {who}")
        raise AuthorizationDenied(list_key=list_key, operation=operation)

    if record is not None and isinstance(decision, AllowFiltered) and not decision.matches(record):
        logger.warning(f"Denied {operation} on {list_key or 'list'} record {record.get('id')} for {who}")
        raise AuthorizationDenied(list_key=list_key, operation=operation)

    if operation == "update":
        for name in fields:
            override = access.fields.get(name)
            if override is None or override.update is None:
                continue
            if isinstance(override.update(ctx), Denied):
                logger.warning(f"Denied update of field {name} on {list_key or 'list'} for {who}")
                raise AuthorizationDenied(
                    message=f"You do not have access to update field '{name}'",
                    list_key=list_key,
                    operation=operation,
                )

    return decision


# Policies shared by the lists

MEMBER_LIST_ACCESS = ListAccess(
    read=allow_if(is_member),
    create=allow_if(is_admin),
    update=is_admin_or_owner,
    delete=allow_if(is_admin),
)

# create is left unset: nobody registers users through the API
USER_ACCESS = ListAccess(
    read=is_admin_or_owner,
    update=is_admin_or_owner,
    delete=allow_if(is_admin),
    fields={"is_admin": FieldAccess(update=allow_if(is_admin))},
)
