"""
test_admin.py - Unit tests for admin.py

Tests:
- AdminGate: two-phase transfer, authorisation, null identities
- ReentrancyGuard: exclusive hold, release on every exit path
"""

import pytest

from bpt_oracle import (
    AdminGate,
    AdminState,
    AuthorizationError,
    DuplicateAdminProposal,
    NoPendingAdmin,
    ReentrancyGuard,
    ReentrantCall,
    Unauthorized,
    ZERO_ADDRESS,
)


@pytest.fixture
def gate():
    return AdminGate("alice", verbose=False)


class TestAdminGate:

    def test_initial_state(self, gate):
        assert gate.admin == "alice"
        assert gate.pending_admin is None
        assert gate.state == AdminState(admin="alice", pending_admin=None)

    @pytest.mark.parametrize("admin", [None, ZERO_ADDRESS])
    def test_null_initial_admin(self, admin):
        with pytest.raises(ValueError, match="null identity"):
            AdminGate(admin)

    def test_require_admin(self, gate):
        gate.require_admin("alice", "register")

    def test_require_admin_rejects_other(self, gate):
        with pytest.raises(Unauthorized, match="not authorized to call register") as exc_info:
            gate.require_admin("mallory", "register")
        assert exc_info.value.caller == "mallory"
        assert isinstance(exc_info.value, AuthorizationError)

    def test_require_admin_rejects_null(self, gate):
        with pytest.raises(Unauthorized):
            gate.require_admin(None, "register")

    def test_propose_and_accept(self, gate):
        gate.propose_admin("bob", caller="alice")
        assert gate.pending_admin == "bob"
        assert gate.admin == "alice"

        assert gate.accept_admin() == "bob"
        assert gate.admin == "bob"
        assert gate.pending_admin is None

    def test_rights_move_with_transfer(self, gate):
        gate.propose_admin("bob", caller="alice")
        gate.accept_admin(caller="bob")
        with pytest.raises(Unauthorized):
            gate.require_admin("alice", "register")
        gate.require_admin("bob", "register")

    def test_accept_callable_by_anyone(self, gate):
        gate.propose_admin("bob", caller="alice")
        assert gate.accept_admin(caller="carol") == "bob"

    def test_propose_requires_admin(self, gate):
        with pytest.raises(Unauthorized):
            gate.propose_admin("mallory", caller="mallory")
        assert gate.pending_admin is None

    def test_duplicate_proposal(self, gate):
        gate.propose_admin("bob", caller="alice")
        with pytest.raises(DuplicateAdminProposal, match="already the pending admin"):
            gate.propose_admin("bob", caller="alice")
        assert gate.pending_admin == "bob"

    def test_replace_proposal(self, gate):
        gate.propose_admin("bob", caller="alice")
        gate.propose_admin("carol", caller="alice")
        assert gate.pending_admin == "carol"

    def test_withdraw_proposal_with_null(self, gate):
        gate.propose_admin("bob", caller="alice")
        gate.propose_admin(ZERO_ADDRESS, caller="alice")
        assert gate.pending_admin is None
        with pytest.raises(NoPendingAdmin):
            gate.accept_admin()

    def test_proposing_null_when_nothing_pending(self, gate):
        with pytest.raises(DuplicateAdminProposal):
            gate.propose_admin(None, caller="alice")

    def test_accept_without_proposal(self, gate):
        with pytest.raises(NoPendingAdmin, match="No pending admin"):
            gate.accept_admin()
        assert gate.admin == "alice"

    def test_no_pending_admin_is_value_error(self, gate):
        with pytest.raises(ValueError):
            gate.accept_admin()

    def test_accept_twice(self, gate):
        gate.propose_admin("bob", caller="alice")
        gate.accept_admin()
        with pytest.raises(NoPendingAdmin):
            gate.accept_admin()

    def test_verbose_prints(self, capsys):
        gate = AdminGate("alice", verbose=True)
        gate.propose_admin("bob", caller="alice")
        gate.accept_admin(caller="bob")
        out = capsys.readouterr().out
        assert "Admin proposed: bob" in out
        assert "Admin accepted by bob" in out

    def test_repr(self, gate):
        assert "alice" in repr(gate)


class TestReentrancyGuard:

    def test_hold_and_release(self):
        guard = ReentrancyGuard()
        assert not guard.locked
        with guard.hold("register"):
            assert guard.locked
        assert not guard.locked

    def test_reentry_rejected(self):
        guard = ReentrancyGuard()
        with guard.hold("register"):
            with pytest.raises(ReentrantCall, match="propose_admin"):
                with guard.hold("propose_admin"):
                    pass
            assert guard.locked
        assert not guard.locked

    def test_released_on_exception(self):
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard.hold("register"):
                raise RuntimeError("boom")
        assert not guard.locked

    def test_exception_propagates(self):
        guard = ReentrancyGuard()
        with pytest.raises(KeyError):
            with guard.hold("register"):
                raise KeyError("x")

    def test_sequential_holds(self):
        guard = ReentrancyGuard()
        for operation in ("register", "propose_admin", "accept_admin"):
            with guard.hold(operation):
                pass
        assert not guard.locked
