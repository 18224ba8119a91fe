"""Tests for job dependency ordering."""

import pytest

from pages_pipeline.errors import WorkflowDefinitionError
from pages_pipeline.models import Job
from pages_pipeline.services import JobGraph


def job(name, needs=()):
    return Job(name=name, runs_on="ubuntu-latest", needs=list(needs))


class TestJobGraph:
    """Tests for JobGraph."""

    def test_dependent_follows_its_needs(self):
        graph = JobGraph([job("deploy-pages", ["build-doc"]), job("build-doc")])

        assert [j.name for j in graph.order()] == ["build-doc", "deploy-pages"]
        assert graph.dependencies == [[1], []]

    def test_independent_jobs_keep_declaration_order(self):
        graph = JobGraph([job("a"), job("b"), job("c", ["b", "a"]), job("d")])

        assert [j.name for j in graph.order()] == ["a", "b", "c", "d"]
        assert [j.name for j in graph.needs_of("c")] == ["b", "a"]

    def test_unknown_need(self):
        with pytest.raises(WorkflowDefinitionError, match="unknown job 'build'"):
            JobGraph([job("deploy-pages", ["build"])])

    def test_self_need(self):
        with pytest.raises(WorkflowDefinitionError, match="needs itself"):
            JobGraph([job("a", ["a"])])

    def test_cycle(self):
        with pytest.raises(WorkflowDefinitionError, match="cycle"):
            JobGraph([job("a", ["b"]), job("b", ["a"]), job("c")])

    def test_duplicate_names(self):
        with pytest.raises(WorkflowDefinitionError, match="Duplicate"):
            JobGraph([job("a"), job("a")])
