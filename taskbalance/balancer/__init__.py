"""Weighted driver selection with backup failover for a single task."""

from taskbalance.balancer.backups import BackupList
from taskbalance.balancer.driver import Driver
from taskbalance.balancer.facade import Balancer
from taskbalance.balancer.hooks import HookRegistry
from taskbalance.balancer.registration import define_driver, parse_driver_args
from taskbalance.balancer.results import ResultLog
from taskbalance.balancer.selection import select_by_weight, selection_probabilities
from taskbalance.balancer.task import Task

__all__ = [
    "BackupList",
    "Balancer",
    "Driver",
    "HookRegistry",
    "ResultLog",
    "Task",
    "define_driver",
    "parse_driver_args",
    "select_by_weight",
    "selection_probabilities",
]
