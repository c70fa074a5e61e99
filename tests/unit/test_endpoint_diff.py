"""Tests for endpoint set diffing."""

import pytest

from mcs_operator.models import EndpointSet
from mcs_operator.services.endpoint_diff import EndpointDiff, apply_diff, diff_endpoints
from tests.fixtures.service_export_resources import make_endpoint


def endpoint_set(*ips: str, **kwargs) -> EndpointSet:
    return EndpointSet(make_endpoint(ip, **kwargs) for ip in ips)


class TestDiffEndpoints:
    def test_new_endpoints_are_added(self):
        diff = diff_endpoints(endpoint_set("10.0.0.1", "10.0.0.2"), EndpointSet())

        assert [e.ip for e in diff.to_add] == ["10.0.0.1", "10.0.0.2"]
        assert diff.to_remove == []

    def test_stale_endpoints_are_removed(self):
        diff = diff_endpoints(endpoint_set("10.0.0.1"), endpoint_set("10.0.0.1", "10.0.0.2"))

        assert diff.to_add == []
        assert [e.ip for e in diff.to_remove] == ["10.0.0.2"]

    def test_equal_sets_give_empty_diff(self):
        diff = diff_endpoints(endpoint_set("10.0.0.1"), endpoint_set("10.0.0.1"))
        assert diff.is_empty

    def test_attribute_changes_alone_are_not_a_difference(self):
        desired = endpoint_set("10.0.0.1", hostname="new")
        reported = endpoint_set("10.0.0.1", hostname="old")

        assert diff_endpoints(desired, reported).is_empty

    def test_empty_desired_removes_everything(self):
        diff = diff_endpoints(EndpointSet(), endpoint_set("10.0.0.1", "10.0.0.2"))

        assert diff.to_add == []
        assert len(diff.to_remove) == 2

    def test_port_change_is_remove_plus_add(self):
        desired = EndpointSet([make_endpoint("10.0.0.1", 9090)])
        reported = EndpointSet([make_endpoint("10.0.0.1", 8080)])

        diff = diff_endpoints(desired, reported)

        assert [e.key for e in diff.to_add] == [("10.0.0.1", 9090)]
        assert [e.key for e in diff.to_remove] == [("10.0.0.1", 8080)]


@pytest.mark.parametrize(
    "desired,reported",
    [
        ((), ()),
        (("10.0.0.1",), ()),
        ((), ("10.0.0.1",)),
        (("10.0.0.1", "10.0.0.2"), ("10.0.0.2", "10.0.0.3")),
        (("10.0.0.1", "10.0.0.2", "10.0.0.3"), ("10.0.0.1", "10.0.0.2", "10.0.0.3")),
    ],
)
def test_applying_diff_to_reported_yields_desired(desired, reported):
    desired_set = endpoint_set(*desired)
    reported_set = endpoint_set(*reported)

    diff = diff_endpoints(desired_set, reported_set)

    assert {e.key for e in diff.to_add} == desired_set.keys() - reported_set.keys()
    assert {e.key for e in diff.to_remove} == reported_set.keys() - desired_set.keys()
    assert apply_diff(reported_set, diff) == desired_set


def test_empty_diff_default():
    assert EndpointDiff().is_empty
