#!/usr/bin/env python3
"""
Capability Checks

A single authorization service keyed by (caller, role), applied as a
decorator in front of each mutating entry point.
"""

import functools
import logging
from enum import Enum
from typing import Dict, Optional, Set

from .errors import CapabilityError
from .transaction import StatefulComponent

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Named capabilities"""
    OWNER = "OWNER"
    MAINTAINER = "MAINTAINER"
    PAUSER = "PAUSER"
    MINTER = "MINTER"
    POOL = "POOL"
    RATIO_SETTER = "RATIO_SETTER"


class AccessControl(StatefulComponent):
    """Role membership registry"""

    def __init__(self):
        super().__init__()
        self._members: Dict[Role, Set[str]] = {role: set() for role in Role}

    def has_role(self, role: Role, account: Optional[str]) -> bool:
        return account is not None and account in self._members[role]

    def get_role_member_count(self, role: Role) -> int:
        return len(self._members[role])

    def get_role_members(self, role: Role) -> Set[str]:
        return set(self._members[role])

    def _setup_role(self, role: Role, account: str):
        """Ungated grant used while a component initializes"""
        self._members[role].add(account)

    def _remove_role(self, role: Role, account: str):
        self._members[role].discard(account)

    def grant_role(self, caller: str, role: Role, account: str):
        """Grant a role; only the owner may administer roles"""
        if not self.has_role(Role.OWNER, caller):
            raise CapabilityError("Caller is not the owner")
        self._members[role].add(account)
        logger.debug("granted %s to %s", role.value, account)

    def revoke_role(self, caller: str, role: Role, account: str):
        """Revoke a role; only the owner may administer roles"""
        if not self.has_role(Role.OWNER, caller):
            raise CapabilityError("Caller is not the owner")
        self._members[role].discard(account)
        logger.debug("revoked %s from %s", role.value, account)

    def get_state(self) -> Dict[str, list]:
        return {role.value: sorted(members) for role, members in self._members.items()}


def requires_role(role: Role, reason: str):
    """
    Gate a component method to holders of `role`.

    The wrapped method must take the calling account as its first argument
    after self, and the component must expose an `access` attribute.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, caller, *args, **kwargs):
            if not self.access.has_role(role, caller):
                raise CapabilityError(reason)
            return func(self, caller, *args, **kwargs)
        wrapper.required_role = role
        return wrapper
    return decorator
