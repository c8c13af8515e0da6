"""Tests for Action, Origin, Role and the event models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from call_rbac.calls.action import Action, CallEntry
from call_rbac.events import AccessGranted, AccessRevoked, CallsUpdated, EventLog
from call_rbac.permissions.origin import Origin, SuperAuthority
from call_rbac.permissions.roles import Role
from call_rbac.utils.errors import AuthorizationRejectedError, ValidationError
from helpers import ROOT, signed, transfer


class TestAction:
    """Tests for action identity."""

    def test_encoding_ignores_argument_order(self):
        a = Action(module="balances", name="transfer", args={"dest": "bob", "value": 5})
        b = Action(module="balances", name="transfer", args={"value": 5, "dest": "bob"})
        assert a.encode() == b.encode()
        assert a.digest() == b.digest()

    def test_encoding_depends_on_arguments(self):
        assert transfer("bob", 5).encode() != transfer("bob", 6).encode()
        assert transfer("bob", 5).encode() != transfer("carol", 5).encode()

    def test_encoding_is_compact_sorted_json(self):
        action = Action(module="m", name="n", args={"b": 1, "a": "é"})
        assert action.encode() == '{"args":{"a":"é","b":1},"module":"m","name":"n"}'.encode()

    def test_str_uses_qualified_name_and_digest(self):
        action = transfer("bob", 5)
        assert str(action) == f"balances.transfer#{action.digest()[:12]}"

    def test_empty_names_rejected(self):
        with pytest.raises(PydanticValidationError):
            Action(module="", name="transfer")

    def test_call_entry_round_trip(self):
        entry = CallEntry(transfer("bob", 5), signed("alice"))
        assert CallEntry.from_dict(entry.to_dict()) == entry

    def test_actions_are_hashable_by_identity(self):
        """Test actions and entries work as set members, keyed like the registry."""
        assert len({transfer("bob", 5), transfer("bob", 5), transfer("bob", 6)}) == 2
        assert hash(transfer("bob", 5)) == hash(transfer("bob", 5))
        assert Action(module="m", name="n", args={"v": 1}) != Action(
            module="m", name="n", args={"v": 1.0}
        )

        entry = CallEntry(transfer("bob", 5), signed("alice"))
        assert {entry: "ok"}[CallEntry(transfer("bob", 5), signed("alice"))] == "ok"


class TestOrigin:
    """Tests for Origin."""

    def test_kinds(self):
        assert ROOT.is_root and not ROOT.is_signed
        assert signed("alice").is_signed
        assert not Origin.none().is_root and not Origin.none().is_signed

    def test_ensure_signed(self):
        assert signed("alice").ensure_signed() == "alice"
        with pytest.raises(AuthorizationRejectedError):
            ROOT.ensure_signed()
        with pytest.raises(AuthorizationRejectedError):
            Origin.none().ensure_signed()

    def test_invalid_origins(self):
        with pytest.raises(ValueError):
            Origin("admin")
        with pytest.raises(ValueError):
            Origin("root", "alice")
        with pytest.raises(ValidationError):
            Origin.signed("")

    def test_dict_round_trip(self):
        for origin in (ROOT, Origin.none(), signed("alice")):
            assert Origin.from_dict(origin.to_dict()) == origin

    def test_super_authority(self):
        authority = SuperAuthority(["ops"])
        assert authority.is_super(ROOT)
        assert authority.is_super(signed("ops"))
        assert not authority.is_super(signed("alice"))
        assert not authority.is_super(Origin.none())
        with pytest.raises(AuthorizationRejectedError, match="super authority"):
            authority.ensure(signed("alice"))


class TestRole:
    """Tests for role names."""

    def test_from_name(self):
        assert Role.from_name("admin") is Role.ADMIN
        assert Role.from_name(" Executor ") is Role.EXECUTOR
        assert Role.from_name("Executer") is Role.EXECUTOR

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown role"):
            Role.from_name("owner")


class TestEventLog:
    """Tests for the in-memory event sink."""

    def test_publish_and_subscribe(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)

        event = CallsUpdated(group=3)
        log.publish(event)

        assert log.last() is event
        assert seen == [event]
        assert len(log) == 1

        log.clear()
        assert log.last() is None

    def test_matches_ignores_timestamp(self):
        a = AccessGranted(group=1, account="alice", role=Role.ADMIN)
        b = AccessGranted(group=1, account="alice", role=Role.ADMIN)
        assert a.matches(b)
        assert not a.matches(AccessRevoked(group=1, account="alice", role=Role.ADMIN))
        assert not a.matches(AccessGranted(group=1, account="alice", role=Role.EXECUTOR))

    def test_failing_subscriber_is_isolated(self):
        """Test one raising subscriber neither blocks the others nor the publisher."""
        log = EventLog()
        seen = []

        def broken(event):
            raise RuntimeError("bus down")

        log.subscribe(broken)
        log.subscribe(seen.append)

        log.publish(CallsUpdated(group=1))
        log.publish(CallsUpdated(group=2))

        assert [event.group for event in seen] == [1, 2]
        assert len(log) == 2
