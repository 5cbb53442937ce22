# electionledger/contract/identity.py
# Identity & role registry: registration, login, profile, password, role moves
import logging
from typing import Optional, Sequence, Tuple

from ..canonical import canonical_json
from ..config import PARTICIPANT_ROLES, ROLE_CANDIDATE, ROLES, SINGLETON_ROLES
from ..errors import AlreadyExists, InvalidArgument, InvalidCredentials, NotFound, SingletonViolation
from ..keys import identity_key, identity_prefix, prefix_range, singleton_key
from ..models import Identity
from ..security import hash_password, verify_password
from .complaints import log_action
from .elections import drop_from_rosters
from .router import ContractRouter

logger = logging.getLogger(__name__)

router = ContractRouter(tags=["Identity"])

# Where reassignRole looks for an identity, most common role first
LOOKUP_ORDER = PARTICIPANT_ROLES + SINGLETON_ROLES


def normalize_role(role: str) -> str:
    normalized = (role or "").strip().lower().replace("_", "-")
    if normalized not in ROLES:
        raise InvalidArgument(f"Unknown role: {role!r}")
    return normalized


def _action_suffix(role: str) -> str:
    return role.upper().replace("-", "_")


def singleton_count(ctx, role: str) -> int:
    counter = ctx.get_json(singleton_key(role))
    return counter["count"] if counter else 0


def _adjust_singleton(ctx, role: str, delta: int) -> None:
    if role not in SINGLETON_ROLES:
        return
    count = singleton_count(ctx, role) + delta
    if count > 0:
        ctx.put_json(singleton_key(role), {"role": role, "count": count})
    else:
        ctx.del_state(singleton_key(role))


def _check_singleton(ctx, role: str) -> None:
    if role in SINGLETON_ROLES and singleton_count(ctx, role) > 0:
        raise SingletonViolation(f"{role} can only be registered once.")


def find_identity(ctx, did: str, roles: Sequence[str] = LOOKUP_ORDER) -> Optional[Tuple[str, dict]]:
    """First (role, record) found for did under the given role prefixes."""
    for role in roles:
        record = ctx.get_json(identity_key(role, did))
        if record:
            return role, record
    return None


def move_identity(ctx, record: dict, old_role: str, new_role: str) -> Identity:
    """Re-key an identity under a new role in the current transaction."""
    did = record["did"]
    new_key = identity_key(new_role, did)
    if old_role != new_role:
        if ctx.exists(new_key):
            raise AlreadyExists(f"{new_role} {did} already registered.")
        _check_singleton(ctx, new_role)
    identity = Identity(**{**record, "role": new_role})
    ctx.move_state(identity_key(old_role, did), new_key, identity)
    if old_role != new_role:
        _adjust_singleton(ctx, old_role, -1)
        _adjust_singleton(ctx, new_role, 1)
        if old_role == ROLE_CANDIDATE:
            drop_from_rosters(ctx, did)
        logger.info(f"Identity {did} moved from {old_role} to {new_role}")
    return identity


def _load_identity(ctx, role: str, did: str) -> Tuple[str, dict]:
    key = identity_key(role, did)
    record = ctx.get_json(key)
    if record is None:
        raise NotFound("User not found")
    return key, record


# === USER MANAGEMENT ===

@router.transaction("registerIdentity")
def register_identity(ctx, role: str, did: str, full_name: str, dob: str, birthplace: str,
                      username: str, password: str, image: str = "") -> str:
    role = normalize_role(role)
    if not did:
        raise InvalidArgument("did is required")
    if not password:
        raise InvalidArgument("password is required")
    key = identity_key(role, did)
    if ctx.exists(key):
        raise AlreadyExists(f"{role} already registered.")
    _check_singleton(ctx, role)

    identity = Identity(
        did=did,
        fullName=full_name,
        dob=dob,
        birthplace=birthplace,
        username=username,
        passwordHash=hash_password(password),
        image=image or "",
        role=role,
        createdAt=ctx.tx_timestamp,
    )
    ctx.put_json(key, identity)
    _adjust_singleton(ctx, role, 1)
    log_action(ctx, f"REGISTER_{_action_suffix(role)}", did)
    return canonical_json(identity)


@router.transaction("authenticate")
def authenticate(ctx, role: str, did: str, dob: str, username: str, password: str) -> str:
    """
    Check login credentials. The full record comes back, digest included;
    stripping sensitive fields is the caller's job.
    """
    role = normalize_role(role)
    user = ctx.get_json(identity_key(role, did))
    if user is None:
        raise InvalidCredentials()
    if (
        user.get("did") != did
        or user.get("dob") != dob
        or user.get("username") != username
        or not verify_password(password, user.get("passwordHash", ""))
    ):
        raise InvalidCredentials()
    log_action(ctx, f"LOGIN_{_action_suffix(role)}", did)
    return canonical_json(user)


@router.query("getProfile")
def get_profile(ctx, role: str, did: str) -> str:
    _, record = _load_identity(ctx, normalize_role(role), did)
    return canonical_json(record)


@router.transaction("updateProfile")
def update_profile(ctx, role: str, did: str, full_name: str, birthplace: str, image: str = "") -> str:
    key, record = _load_identity(ctx, normalize_role(role), did)
    identity = Identity(**record)
    if full_name:
        identity.fullName = full_name
    if birthplace:
        identity.birthplace = birthplace
    if image:
        identity.image = image
    ctx.put_json(key, identity)
    log_action(ctx, "UPDATE_PROFILE", did)
    return canonical_json(identity)


@router.transaction("changePassword")
def change_password(ctx, role: str, did: str, old_password: str, new_password: str) -> str:
    key, record = _load_identity(ctx, normalize_role(role), did)
    if not verify_password(old_password, record.get("passwordHash", "")):
        raise InvalidCredentials("Old password incorrect")
    if not new_password:
        raise InvalidArgument("new password is required")
    identity = Identity(**record)
    identity.passwordHash = hash_password(new_password)
    ctx.put_json(key, identity)
    log_action(ctx, "CHANGE_PASSWORD", did)
    return canonical_json(identity)


@router.transaction("deleteIdentity")
def delete_identity(ctx, role: str, did: str) -> str:
    role = normalize_role(role)
    key, _ = _load_identity(ctx, role, did)
    ctx.del_state(key)
    _adjust_singleton(ctx, role, -1)
    if role == ROLE_CANDIDATE:
        drop_from_rosters(ctx, did)
    log_action(ctx, "DELETE_USER", did)
    return canonical_json({"message": f"User {did} deleted"})


def identities_with_role(ctx, role: str) -> list:
    return [record for _, record in ctx.scan_json(*prefix_range(identity_prefix(role))) if record.get("role") == role]


@router.query("listByRole")
def list_by_role(ctx, role: str) -> str:
    return canonical_json(identities_with_role(ctx, normalize_role(role)))


@router.query("listAll")
def list_all(ctx) -> str:
    users = []
    for role in ROLES:
        users.extend(identities_with_role(ctx, role))
    return canonical_json(users)


@router.transaction("reassignRole")
def reassign_role(ctx, did: str, new_role: str) -> str:
    new_role = normalize_role(new_role)
    found = find_identity(ctx, did)
    if found is None:
        raise NotFound("User not found")
    old_role, record = found
    if old_role == new_role:
        raise AlreadyExists(f"{did} already holds role {new_role}.")
    identity = move_identity(ctx, record, old_role, new_role)
    log_action(ctx, "ASSIGN_ROLE", did)
    return canonical_json(identity)
