"""
Core permissions utilities for role-scoped access control.

Every role has an explicit entry for every resource category stating which
actions it may perform, which fields it may write, and whether the permission
covers all records or only the ones the actor owns.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from ..auth.models import UserRole


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceCategory(str, Enum):
    PATIENT_PROFILE = "patient_profile"
    NOTES = "notes"
    DOCUMENTS = "documents"


class Scope(str, Enum):
    OWN = "own"
    ALL = "all"


# Attribute holding the owning account id for each category
OWNER_FIELDS: Dict[ResourceCategory, str] = {
    ResourceCategory.PATIENT_PROFILE: "user_id",
    ResourceCategory.NOTES: "author_id",
    ResourceCategory.DOCUMENTS: "uploader_id",
}


@dataclass(frozen=True)
class ResourcePolicy:
    actions: FrozenSet[Action] = frozenset()
    editable_fields: FrozenSet[str] = frozenset()
    scope: Scope = Scope.OWN


DENY_ALL = ResourcePolicy()

DOCTOR_PROFILE_FIELDS = frozenset({
    "name",
    "date_of_birth",
    "diagnosis",
    "stage",
    "cancer_type",
    "allergies",
    "current_medications",
    "emergency_contacts",
    "operations",
    "treatment_summary",
})

NURSE_PROFILE_FIELDS = frozenset({
    "allergies",
    "current_medications",
    "emergency_contacts",
    "operations",
})

NOTE_FIELDS = frozenset({"content"})
DOCUMENT_FIELDS = frozenset({"title", "type", "description", "url"})

READ_WRITE = frozenset({Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE})


def build_policy_table(
    entries: Dict[UserRole, Dict[ResourceCategory, ResourcePolicy]]
) -> Dict[UserRole, Dict[ResourceCategory, ResourcePolicy]]:
    """
    Check that every role has a policy for every category.

    Raises:
        ValueError: If a role or a (role, category) cell is missing
    """
    for role in UserRole:
        if role not in entries:
            raise ValueError(f"Access policy has no entry for role {role.value}")
        for category in ResourceCategory:
            if category not in entries[role]:
                raise ValueError(
                    f"Access policy for role {role.value} has no entry for {category.value}"
                )
    return {role: dict(categories) for role, categories in entries.items()}


ROLE_POLICIES = build_policy_table({
    UserRole.DOCTOR: {
        ResourceCategory.PATIENT_PROFILE: ResourcePolicy(
            actions=frozenset({Action.READ, Action.UPDATE}),
            editable_fields=DOCTOR_PROFILE_FIELDS,
            scope=Scope.ALL,
        ),
        ResourceCategory.NOTES: ResourcePolicy(READ_WRITE, NOTE_FIELDS, Scope.ALL),
        ResourceCategory.DOCUMENTS: ResourcePolicy(
            frozenset({Action.READ, Action.CREATE, Action.DELETE}), DOCUMENT_FIELDS, Scope.ALL
        ),
    },
    UserRole.NURSE: {
        ResourceCategory.PATIENT_PROFILE: ResourcePolicy(
            actions=frozenset({Action.READ, Action.UPDATE}),
            editable_fields=NURSE_PROFILE_FIELDS,
            scope=Scope.ALL,
        ),
        ResourceCategory.NOTES: ResourcePolicy(READ_WRITE, NOTE_FIELDS, Scope.OWN),
        ResourceCategory.DOCUMENTS: ResourcePolicy(
            frozenset({Action.READ, Action.CREATE, Action.DELETE}), DOCUMENT_FIELDS, Scope.OWN
        ),
    },
    UserRole.PATIENT: {
        ResourceCategory.PATIENT_PROFILE: ResourcePolicy(actions=frozenset({Action.READ})),
        ResourceCategory.NOTES: DENY_ALL,
        ResourceCategory.DOCUMENTS: DENY_ALL,
    },
    UserRole.GUARDIAN: {
        ResourceCategory.PATIENT_PROFILE: DENY_ALL,
        ResourceCategory.NOTES: DENY_ALL,
        ResourceCategory.DOCUMENTS: DENY_ALL,
    },
})


def get_policy(
    role: Union[UserRole, str], category: Union[ResourceCategory, str]
) -> Optional[ResourcePolicy]:
    """
    Look up the policy cell for a role and category.

    Returns:
        ResourcePolicy, or None when the role or category is unknown
    """
    try:
        return ROLE_POLICIES[UserRole(role)][ResourceCategory(category)]
    except ValueError:
        return None


def can_perform(
    role: Union[UserRole, str],
    action: Union[Action, str],
    category: Union[ResourceCategory, str],
    field: Optional[str] = None,
) -> bool:
    """
    Check whether a role may perform an action on a resource category.

    Anything not explicitly listed is denied.

    Args:
        role: Actor role
        action: Requested action
        category: Resource category
        field: Field being written, if the check is for a single field

    Returns:
        bool: True if the action (and field) is allowed
    """
    policy = get_policy(role, category)
    if policy is None:
        return False

    try:
        action = Action(action)
    except ValueError:
        return False

    if action not in policy.actions:
        return False

    if field is not None:
        return field in policy.editable_fields

    return True


def _owner_of(resource: Any, owner_field: str) -> Any:
    if isinstance(resource, dict):
        return resource.get(owner_field)
    return getattr(resource, owner_field, None)


def is_in_scope(
    role: Union[UserRole, str],
    actor_id: str,
    resource: Any,
    category: Union[ResourceCategory, str],
) -> bool:
    """
    Check whether a resource falls inside the actor's scope.

    With scope "all" every resource is in scope. With scope "own" the
    resource's owner id must equal the actor id exactly.

    Args:
        role: Actor role
        actor_id: Account id of the actor
        resource: Object or dict carrying the owner attribute of its category
        category: Resource category

    Returns:
        bool: True if the resource is in scope
    """
    policy = get_policy(role, category)
    if policy is None:
        return False

    if policy.scope == Scope.ALL:
        return True

    owner_id = _owner_of(resource, OWNER_FIELDS[ResourceCategory(category)])
    if owner_id is None or actor_id is None:
        return False
    return str(owner_id) == str(actor_id)
