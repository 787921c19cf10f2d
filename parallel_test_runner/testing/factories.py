"""Test factories for generating test data."""

from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from parallel_test_runner.models.configuration import RunConfiguration
from parallel_test_runner.models.work_item import TestCase, WorkItem


class TestCaseFactory(DataclassFactory[TestCase]):
    """Factory for TestCase."""

    __model__ = TestCase

    is_death_test = False


class WorkItemFactory(DataclassFactory[WorkItem]):
    """Factory for WorkItem."""

    __model__ = WorkItem

    is_death_test = False
    also_run_disabled = False


class RunConfigurationFactory(ModelFactory[RunConfiguration]):
    """Factory for RunConfiguration."""

    filter = None
