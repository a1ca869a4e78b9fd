"""
Unit tests for the harvest dispatcher.

Tests output ordering, verification gating, and the short-circuit on
the first failing unit.
"""
from unittest.mock import Mock

import pytest

from redoubt.api.models import HarvestResponse, Product, Task
from redoubt.policy.engine import HarvestDispatcher, ProbeError, ProducerError
from redoubt.policy.models import Policy

from stubs import broken, const, echo, fail, make_env


class TestDispatchOutput:

    def test_single_echo_policy(self, env):
        dispatcher = HarvestDispatcher([Policy("p1", produce=(echo(tasks=["t1"]),))])

        response = dispatcher.dispatch(env)

        assert response == HarvestResponse(tasks=[Task(id="t1")], products=[])
        assert response.model_dump() == {"tasks": [{"id": "t1", "params": {}}], "products": []}

    def test_empty_policy_list(self, env):
        assert HarvestDispatcher([]).dispatch(env).model_dump() == {"tasks": [], "products": []}

    def test_policy_then_producer_order(self, env):
        dispatcher = HarvestDispatcher([
            Policy("p1", produce=(echo(tasks=["a", "b"], products=["x"]), echo(tasks=["c"]))),
            Policy("p2", produce=()),
            Policy("p3", produce=(echo(tasks=["d"], products=["y", "z"]),)),
        ])

        response = dispatcher.dispatch(env)

        assert [t.id for t in response.tasks] == ["a", "b", "c", "d"]
        assert [p.name for p in response.products] == ["x", "y", "z"]
        assert all(p.content == "m1" for p in response.products)

    def test_repeated_dispatch_is_identical(self, policies, env):
        dispatcher = HarvestDispatcher(policies)
        first = dispatcher.dispatch(env).model_dump_json()
        second = dispatcher.dispatch(env).model_dump_json()
        assert first == second

    def test_each_dispatch_gets_fresh_response(self, env):
        dispatcher = HarvestDispatcher([Policy("p1", produce=(echo(tasks=["t1"]),))])
        first = dispatcher.dispatch(env)
        first.tasks.append(Task(id="tampered"))
        assert [t.id for t in dispatcher.dispatch(env).tasks] == ["t1"]

    def test_policies_snapshot(self):
        source = [Policy("p1")]
        dispatcher = HarvestDispatcher(source)
        source.append(Policy("p2"))
        assert [p.name for p in dispatcher.policies] == ["p1"]


class TestProducerFailure:

    def test_second_policy_failure_discards_first(self, env):
        dispatcher = HarvestDispatcher([
            Policy("first", produce=(echo(tasks=["t1"], products=["x"]),)),
            Policy("second", produce=(fail("vault sealed"),)),
        ])

        with pytest.raises(ProducerError) as exc_info:
            dispatcher.dispatch(env)

        err = exc_info.value
        assert err.policy == "second"
        assert err.unit == "fail"
        assert err.message == "vault sealed"
        assert str(err) == "policy 'second' producer 'fail': vault sealed"

    def test_no_producer_runs_after_failure(self, env):
        after_same = Mock(type="mock", produce=Mock(return_value=([], [])))
        after_next = Mock(type="mock", produce=Mock(return_value=([], [])))
        dispatcher = HarvestDispatcher([
            Policy("p1", produce=(echo(tasks=["t1"]), fail(), after_same)),
            Policy("p2", produce=(after_next,)),
        ])

        with pytest.raises(ProducerError):
            dispatcher.dispatch(env)

        after_same.produce.assert_not_called()
        after_next.produce.assert_not_called()

    def test_producer_receives_environment(self, env):
        producer = Mock(type="mock", produce=Mock(return_value=([Task(id="t")], [Product(name="p", content="c")])))
        HarvestDispatcher([Policy("p", produce=(producer,))]).dispatch(env)
        producer.produce.assert_called_once_with(env)


class TestVerification:

    def test_failing_probe_skips_only_its_policy(self, policies, env):
        response = HarvestDispatcher(policies).dispatch(env)
        assert [t.id for t in response.tasks] == ["t1", "t2", "t3"]
        assert [p.name for p in response.products] == ["motd"]

    def test_all_probes_must_pass(self, env):
        dispatcher = HarvestDispatcher([
            Policy("p", verify=(const(True), const(False)), produce=(echo(tasks=["t"]),)),
        ])
        assert dispatcher.dispatch(env).tasks == []

    def test_probes_stop_at_first_rejection(self, env):
        later = Mock(type="mock", verify=Mock(return_value=True))
        dispatcher = HarvestDispatcher([Policy("p", verify=(const(False), later))])
        dispatcher.dispatch(env)
        later.verify.assert_not_called()

    def test_policy_without_probes_always_runs(self, env):
        dispatcher = HarvestDispatcher([Policy("p", verify=(), produce=(echo(tasks=["t"]),))])
        assert [t.id for t in dispatcher.dispatch(env).tasks] == ["t"]

    def test_raising_probe_rejects_request(self, env):
        dispatcher = HarvestDispatcher([
            Policy("first", produce=(echo(tasks=["t1"]),)),
            Policy("second", verify=(broken(),), produce=(echo(tasks=["t2"]),)),
        ])

        with pytest.raises(ProbeError) as exc_info:
            dispatcher.dispatch(env)

        assert str(exc_info.value) == "policy 'second' probe 'broken': probe exploded"

    def test_verification_uses_environment(self):
        from redoubt.units.registry import build_probe_registry

        probe = build_probe_registry().construct("machine_name", {"pattern": "web-.*"})
        dispatcher = HarvestDispatcher([Policy("web", verify=(probe,), produce=(echo(tasks=["w"]),))])

        assert [t.id for t in dispatcher.dispatch(make_env("web-1")).tasks] == ["w"]
        assert dispatcher.dispatch(make_env("db-1")).tasks == []


class TestMalformedProducerOutput:

    @pytest.mark.parametrize("result", [
        ([Task(id="t")], None),
        (None, []),
        (["not a task"], []),
        ([], [Task(id="t")]),
    ])
    def test_bad_shape_is_producer_error(self, env, result):
        producer = Mock(type="mock", produce=Mock(return_value=result))
        dispatcher = HarvestDispatcher([
            Policy("first", produce=(echo(tasks=["t1"]),)),
            Policy("odd", produce=(producer,)),
        ])

        with pytest.raises(ProducerError) as exc_info:
            dispatcher.dispatch(env)

        assert exc_info.value.policy == "odd"
        assert exc_info.value.unit == "mock"

    def test_not_a_pair_is_producer_error(self, env):
        producer = Mock(type="mock", produce=Mock(return_value=None))
        with pytest.raises(ProducerError):
            HarvestDispatcher([Policy("p", produce=(producer,))]).dispatch(env)
