"""
admin.py - Administrative authority and reentrancy guard

AdminGate holds the two-phase admin transfer:

    {admin=A, pending=None} --propose(B)--> {admin=A, pending=B}
                            --accept()----> {admin=B, pending=None}

Only the current admin may propose or perform registry writes. Acceptance is
not restricted to a particular caller; it simply promotes the pending
identity.

ReentrancyGuard is a scoped exclusive flag held for the duration of a mutating
entry point and released on every exit path.
"""

from typing import Optional

from .core import (
    Address,
    AdminState,
    DuplicateAdminProposal,
    NoPendingAdmin,
    ReentrantCall,
    Unauthorized,
    is_null_identity,
)


class AdminGate:
    """
    Two-phase admin transfer and mutation authorisation.

    Example:
        gate = AdminGate("alice")
        gate.propose_admin("bob", caller="alice")
        gate.accept_admin()
        gate.require_admin("bob", "register")
    """

    def __init__(self, admin: Address, verbose: bool = True):
        if is_null_identity(admin):
            raise ValueError("Initial admin cannot be the null identity")
        self._admin: Address = admin
        self._pending_admin: Optional[Address] = None
        self.verbose = verbose

    @property
    def admin(self) -> Address:
        return self._admin

    @property
    def pending_admin(self) -> Optional[Address]:
        return self._pending_admin

    @property
    def state(self) -> AdminState:
        return AdminState(admin=self._admin, pending_admin=self._pending_admin)

    def require_admin(self, caller: Optional[Address], operation: str) -> None:
        """
        Raises:
            Unauthorized: If caller is not the current admin
        """
        if is_null_identity(caller) or caller != self._admin:
            raise Unauthorized(caller, operation)

    def propose_admin(self, candidate: Optional[Address], caller: Optional[Address]) -> None:
        """
        Record `candidate` as the pending admin.

        Proposing the null identity withdraws an outstanding proposal.

        Raises:
            Unauthorized: If caller is not the current admin
            DuplicateAdminProposal: If candidate is already pending
        """
        self.require_admin(caller, "propose_admin")
        if is_null_identity(candidate):
            candidate = None
        if candidate == self._pending_admin:
            raise DuplicateAdminProposal(candidate)
        self._pending_admin = candidate
        if self.verbose:
            print(f"🔑 Admin proposed: {candidate} (current: {self._admin})")

    def accept_admin(self, caller: Optional[Address] = None) -> Address:
        """
        Promote the pending admin and clear the proposal.

        Returns:
            The new admin

        Raises:
            NoPendingAdmin: If there is no pending proposal
        """
        if is_null_identity(self._pending_admin):
            raise NoPendingAdmin()
        previous = self._admin
        self._admin = self._pending_admin
        self._pending_admin = None
        if self.verbose:
            accepted_by = f" by {caller}" if caller else ""
            print(f"🔑 Admin accepted{accepted_by}: {previous} → {self._admin}")
        return self._admin

    def __repr__(self):
        return f"AdminGate(admin={self._admin}, pending={self._pending_admin})"


class ReentrancyGuard:
    """
    Exclusive execution token for mutating entry points.

    Usage:
        guard = ReentrancyGuard()
        with guard.hold("register"):
            ...   # external calls here cannot re-enter another hold()
    """

    def __init__(self):
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._holder is not None

    def hold(self, operation: str) -> "_GuardScope":
        return _GuardScope(self, operation)

    def _acquire(self, operation: str) -> None:
        if self._holder is not None:
            raise ReentrantCall(operation)
        self._holder = operation

    def _release(self) -> None:
        self._holder = None

    def __repr__(self):
        return f"ReentrancyGuard(held_by={self._holder})"


class _GuardScope:
    """Context manager returned by ReentrancyGuard.hold()."""

    __slots__ = ("_guard", "_operation")

    def __init__(self, guard: ReentrancyGuard, operation: str):
        self._guard = guard
        self._operation = operation

    def __enter__(self) -> None:
        self._guard._acquire(self._operation)

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._guard._release()
        return False
