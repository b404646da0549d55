"""User accounts: registration, login, roles, passwords and product counters.

Every function takes the ``Store`` to operate on. Functions that change a
stored user return the driver's modified/deleted count so callers can tell an
update from a no-op.
"""

from enum import IntEnum
import hashlib
import logging
import re
import secrets
import string
from typing import List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from bibliogest import config
from bibliogest.database import Store
from bibliogest.schemas import ROLE_LADDER, Role, User

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits


class RegisterResult(IntEnum):
    ALREADY_EXISTS = 0
    CREATED = 1


class LoginResult(IntEnum):
    WRONG_PASSWORD = -2
    NO_SUCH_USER = -1
    SUCCESS = 1


# Utilities

def hash_password(password: str) -> str:
    return hashlib.sha256((config.PASSWORD_PEPPER + password).encode()).hexdigest()


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    return secrets.compare_digest(hash_password(password), stored)


def generate_password(length: Optional[int] = None) -> str:
    length = length or config.RESET_PASSWORD_LENGTH
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def _prepare(user: User) -> dict:
    if user.password is not None:
        user.password_hash = hash_password(user.password)
    return user.to_document()


# Lookups

def find_by_id(store: Store, user_id: str) -> Optional[User]:
    return User.from_document(store.users.find_one({"_id": user_id}))


def list_all(store: Store) -> List[User]:
    return [User.from_document(doc) for doc in store.users.find().sort("_id", 1)]


def query(store: Store, id_filter: str = "", role_filter: Role = Role.UNDEFINED) -> List[User]:
    """Users whose id contains ``id_filter`` (case-insensitive) and, unless
    ``role_filter`` is ``Role.UNDEFINED``, whose role matches it."""
    filters = {}
    if id_filter:
        filters["_id"] = {"$regex": re.escape(id_filter), "$options": "i"}
    if role_filter != Role.UNDEFINED:
        filters["role"] = int(role_filter)
    return [User.from_document(doc) for doc in store.users.find(filters).sort("_id", 1)]


# Registration and login

def insert(store: Store, user: User) -> None:
    store.users.replace_one({"_id": user.id}, _prepare(user), upsert=True)


def register(store: Store, user: User) -> RegisterResult:
    if store.users.find_one({"_id": user.id}, {"_id": 1}):
        return RegisterResult.ALREADY_EXISTS
    user.product_count = 0
    try:
        store.users.insert_one(_prepare(user))
    except DuplicateKeyError:
        return RegisterResult.ALREADY_EXISTS
    logger.info("Registered user %s with role %s", user.id, user.role.name)
    return RegisterResult.CREATED


def login(store: Store, user: User) -> bool:
    if user.password is None:
        return False
    doc = store.users.find_one({"_id": user.id, "password_hash": hash_password(user.password)})
    return doc is not None


def verify_login(store: Store, user_id: str, password: str) -> LoginResult:
    doc = store.users.find_one({"_id": user_id}, {"password_hash": 1})
    if doc is None:
        logger.warning("Login attempt for unknown user %s", user_id)
        return LoginResult.NO_SUCH_USER
    if not verify_password(password, doc.get("password_hash", "")):
        logger.warning("Wrong password for user %s", user_id)
        return LoginResult.WRONG_PASSWORD
    return LoginResult.SUCCESS


# Roles

def _set_role(store: Store, user: User, current: Role, target: Role) -> int:
    # Only applies if nobody changed the role since we read it
    res = store.users.update_one({"_id": user.id, "role": int(current)}, {"$set": {"role": int(target)}})
    if res.modified_count:
        user.role = target
        logger.info("Role of %s changed from %s to %s", user.id, current.name, target.name)
    return res.modified_count


def _stored_role(store: Store, user_id: str) -> Optional[Role]:
    doc = store.users.find_one({"_id": user_id}, {"role": 1})
    if doc is None:
        return None
    return Role(doc.get("role", Role.UNDEFINED))


def promote_role(store: Store, user: User) -> int:
    current = _stored_role(store, user.id)
    if current is None or current == ROLE_LADDER[-1]:
        return 0
    return _set_role(store, user, current, ROLE_LADDER[ROLE_LADDER.index(current) + 1])


def demote_role(store: Store, user: User) -> int:
    current = _stored_role(store, user.id)
    if current is None or current == ROLE_LADDER[0]:
        return 0
    return _set_role(store, user, current, ROLE_LADDER[ROLE_LADDER.index(current) - 1])


# Passwords

def change_password(store: Store, user: User, new_password: str) -> int:
    new_hash = hash_password(new_password)
    res = store.users.update_one({"_id": user.id}, {"$set": {"password_hash": new_hash}})
    if res.matched_count:
        user.password = new_password
        user.password_hash = new_hash
    return res.modified_count


def reset_password(store: Store, user: User) -> int:
    """Replace the user's password with a random one.

    The new plaintext is left on ``user.password`` for the caller to deliver.
    """
    new_password = generate_password()
    while new_password == user.password:
        new_password = generate_password()
    return change_password(store, user, new_password)


# Lifecycle

def delete(store: Store, user: User) -> int:
    res = store.users.delete_one({"_id": user.id})
    if res.deleted_count:
        logger.info("Deleted user %s", user.id)
    return res.deleted_count


def increment_product_count(store: Store, user: User) -> Optional[int]:
    doc = store.users.find_one_and_update(
        {"_id": user.id},
        {"$inc": {"product_count": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return None
    user.product_count = doc["product_count"]
    return user.product_count
