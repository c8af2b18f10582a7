"""Tests for taskbalance/balancer/facade.py: task registry."""

import random

import pytest

from taskbalance.balancer.facade import Balancer
from taskbalance.core.exceptions import TaskNotFoundError
from taskbalance.core.models import TaskStatus
from tests.drivers import echo, fail


def _setup(task):
    task.add_driver("primary", work=fail)
    task.add_driver("fallback", work=echo, weight=0, backup=True)


class TestBalancer:
    @pytest.fixture
    def balancer(self):
        return Balancer(rng=random.Random(3))

    def test_task_created_once(self, balancer):
        calls = []

        def setup(task):
            calls.append(task.name)
            _setup(task)

        first = balancer.task("sms", data="a", work=setup)
        second = balancer.task("sms", work=setup)
        assert first is second
        assert calls == ["sms"]
        assert balancer.names() == ["sms"]

    def test_existing_task_data_replaced(self, balancer):
        balancer.task("sms", data="a", work=_setup)
        assert balancer.task("sms", data="b").data == "b"
        assert balancer.task("sms").data == "b"

    def test_run(self, balancer):
        balancer.task("sms", data="hello", work=_setup)
        results = balancer.run("sms")
        assert [r.driver for r in results] == ["primary", "fallback"]
        assert results[-1].result == "hello"
        assert balancer.get_task("sms").status is TaskStatus.FINISHED

    def test_run_with_data_and_driver(self, balancer):
        balancer.task("sms", work=_setup)
        results = balancer.run("sms", data="override", driver="fallback")
        assert [r.driver for r in results] == ["fallback"]
        assert results[0].result == "override"

    def test_unknown_task(self, balancer):
        with pytest.raises(TaskNotFoundError):
            balancer.run("email")
        with pytest.raises(TaskNotFoundError):
            balancer.get_task("email")

    def test_has_and_destroy(self, balancer):
        balancer.task("sms")
        assert balancer.has_task("sms")
        balancer.destroy("sms")
        balancer.destroy("sms")
        assert not balancer.has_task("sms")

    def test_instances_are_independent(self):
        one, two = Balancer(), Balancer()
        one.task("sms")
        assert not two.has_task("sms")
