#!/usr/bin/env python3
"""
Capability, Event and Transaction Tests

Role administration, the requires_role gate, the injected clock and
all-or-nothing rollback of nested calls.
"""

import sys
import os
import threading
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from synth_reserve_sim.core.access import AccessControl, Role, requires_role
from synth_reserve_sim.core.clock import ManualClock
from synth_reserve_sim.core.errors import CapabilityError, EconomicBoundError, PreconditionError
from synth_reserve_sim.core.events import EventLog
from synth_reserve_sim.core.math import ONE
from synth_reserve_sim.core.tokens import Token
from synth_reserve_sim.core.transaction import StatefulComponent, Transaction, atomic


class Counter(StatefulComponent):
    """Small component used to observe rollback"""

    def __init__(self):
        super().__init__()
        self.access = AccessControl()
        self.access._setup_role(Role.MAINTAINER, "maintainer")
        self.value = 0
        self.history = []

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def bump(self, caller, amount, fail=False):
        self.value += amount
        self.history.append(amount)
        if fail:
            raise EconomicBoundError("bump failed")
        return self.value

    @atomic
    def bump_twice(self, caller, amount, fail_second=False):
        self.bump(caller, amount)
        return self.bump(caller, amount, fail=fail_second)


class TestAccessControl:
    """Role registry and gate"""

    def setup_method(self):
        self.access = AccessControl()
        self.access._setup_role(Role.OWNER, "owner")

    def test_owner_grants_and_revokes(self):
        self.access.grant_role("owner", Role.MAINTAINER, "alice")
        assert self.access.has_role(Role.MAINTAINER, "alice")
        assert self.access.get_role_member_count(Role.MAINTAINER) == 1

        self.access.revoke_role("owner", Role.MAINTAINER, "alice")
        assert not self.access.has_role(Role.MAINTAINER, "alice")

    def test_non_owner_cannot_grant(self):
        with pytest.raises(CapabilityError, match="Caller is not the owner"):
            self.access.grant_role("mallory", Role.MAINTAINER, "mallory")
        assert not self.access.has_role(Role.MAINTAINER, "mallory")

    def test_zero_identity_holds_no_role(self):
        assert not self.access.has_role(Role.OWNER, None)

    def test_requires_role_gate(self):
        counter = Counter()
        assert counter.bump("maintainer", 2) == 2
        with pytest.raises(CapabilityError, match="Caller is not a maintainer") as exc_info:
            counter.bump("mallory", 1)
        assert exc_info.value.category == "capability"
        assert counter.value == 2


class TestTransactions:
    """All-or-nothing semantics"""

    def test_failed_call_restores_state(self):
        counter = Counter()
        counter.bump("maintainer", 1)
        with pytest.raises(EconomicBoundError):
            counter.bump("maintainer", 5, fail=True)
        assert counter.value == 1, "Failed call must leave no partial update"
        assert counter.history == [1]

    def test_nested_failure_rolls_back_outer_work(self):
        counter = Counter()
        with pytest.raises(EconomicBoundError):
            counter.bump_twice("maintainer", 3, fail_second=True)
        assert counter.value == 0, "First nested bump must be undone too"
        assert counter.bump_twice("maintainer", 3) == 6

    def test_rollback_spans_components_and_events(self):
        events = EventLog()
        token = Token("TKN", events=events)
        token.faucet("alice", 10 * ONE)
        before = len(events)

        with pytest.raises(EconomicBoundError, match="insufficient balance"):
            with Transaction():
                token.transfer("alice", "bob", 4 * ONE)
                token.transfer("alice", "bob", 7 * ONE)

        assert token.balance_of("alice") == 10 * ONE
        assert token.balance_of("bob") == 0
        assert len(events) == before, "Events from a rejected call are discarded"

    def test_concurrent_calls_are_serialized(self):
        counter = Counter()
        token = Token("TKN")
        token.faucet("alice", 1000 * ONE)
        errors = []

        def worker(index):
            for i in range(200):
                try:
                    counter.bump("maintainer", 1, fail=(i % 10 == 0))
                except EconomicBoundError:
                    pass
                try:
                    with Transaction():
                        token.transfer("alice", f"user{index}", ONE)
                        token.transfer(f"user{index}", "alice", 2 * ONE)
                except EconomicBoundError as exc:
                    errors.append(exc.reason)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # 20 of every worker's 200 bumps fail and are rolled back
        assert counter.value == 8 * 180, "A rollback must not undo another thread's committed work"
        assert len(counter.history) == 8 * 180
        assert len(errors) == 8 * 200, "Every over-balance transfer is rejected"
        assert token.balance_of("alice") == 1000 * ONE
        assert token.total_supply == 1000 * ONE


class TestEventsAndClock:

    def test_event_log_filters(self):
        log = EventLog()
        log.emit("A", "x", 1, value=1)
        log.emit("B", "y", 2)
        log.emit("A", "y", 3, value=2)
        assert len(log) == 3
        assert [e.emitter for e in log.filter(name="A")] == ["x", "y"]
        assert log.last("A").args == {"value": 2}
        assert log.last("C") is None
        log.clear()
        assert len(log) == 0

    def test_manual_clock_only_moves_forward(self):
        clock = ManualClock(start=100)
        assert clock.advance(50) == 150
        assert clock.set(200) == 200
        with pytest.raises(PreconditionError, match="clock cannot move backwards"):
            clock.set(10)
        with pytest.raises(PreconditionError):
            clock.advance(-1)
        print("✅ Capability, transaction and clock checks passed")
