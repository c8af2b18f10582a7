"""Shorthand driver registration.

Lets callers describe a driver with loose positional arguments, e.g.::

    define_driver(task, "aliyun 80 backup", send_with_aliyun)
    define_driver(task, send_with_yunpian, "yunpian", 20)

Arguments are classified by kind, not position. A callable is the work.
Strings and numbers are split on whitespace and each token is classified
on its own: all digits sets the weight, anything containing "backup"
(any case) marks a backup, and any other token is the name (the last
one wins). The result is a DriverSpec; the task itself never sees the
loose form.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import ValidationError

from taskbalance.balancer.driver import Driver
from taskbalance.balancer.task import Task
from taskbalance.core.exceptions import ConfigurationError
from taskbalance.core.models import DriverSpec

_WEIGHT_TOKEN = re.compile(r"^[0-9]+$")


def parse_driver_args(*args: Any) -> DriverSpec:
    """Classify shorthand arguments into a DriverSpec.

    Raises:
        ConfigurationError: If no arguments are given or no name is found.
    """
    if not args:
        raise ConfigurationError("Driver registration needs at least one argument")

    name = ""
    work = None
    weight = 1
    backup = False

    for arg in args:
        if callable(arg):
            work = arg
            continue
        if isinstance(arg, bool) or not isinstance(arg, (str, int, float)):
            continue
        for token in str(arg).split():
            if _WEIGHT_TOKEN.match(token):
                weight = int(token)
            elif "backup" in token.lower():
                backup = True
            else:
                name = token

    if not name:
        raise ConfigurationError(f"Could not find a driver name in arguments {args!r}")

    try:
        return DriverSpec(name=name, weight=weight, backup=backup, work=work)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid driver arguments {args!r}: {e}") from e


def define_driver(task: Task, *args: Any) -> Driver:
    """Parse shorthand arguments and register the driver on ``task``.

    Returns the existing driver unchanged if the name is already taken.
    """
    return task.register_driver(parse_driver_args(*args))
