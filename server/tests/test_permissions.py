import pytest

from yqwork.core.permissions import (
    PermissionItem,
    PermissionSet,
    check_permission,
    is_admin,
    permission_matches,
)


def make_set(*strings):
    return PermissionSet.from_strings(strings)


def test_wildcard_request_always_granted():
    assert make_set().has("*")
    assert check_permission(make_set("yq:user:query"), "*")


def test_held_wildcard_grants_everything():
    ps = make_set("*")
    assert ps.has("yq:workHours:generateTable")
    assert ps.has("system")


def test_exact_match():
    ps = make_set("yq:user:query")
    assert ps.has("yq:user:query")
    assert not ps.has("yq:user:edit")


def test_prefix_grants_descendants():
    ps = make_set("yq:workHours")
    assert ps.has("yq:workHours:checkDepartment")
    assert ps.has("yq:workHours:generateTable")
    assert not ps.has("yq:user:query")


def test_prefix_is_segment_aligned():
    ps = make_set("yq:user")
    assert not ps.has("yq:userx")
    assert not ps.has("yq:username:edit")


def test_descendant_does_not_grant_ancestor():
    assert not make_set("yq:user:query").has("yq:user")


@pytest.mark.parametrize("blank", ["", "   "])
def test_blank_items_grant_nothing(blank):
    ps = make_set(blank)
    assert not ps.has("yq:user:query")
    assert not permission_matches(blank, "")


def test_empty_set_grants_nothing_but_wildcard():
    ps = PermissionSet()
    assert len(ps) == 0
    assert not ps.has("yq")
    assert ps.has("*")


def test_admin_by_wildcard():
    assert is_admin(make_set("*"))


def test_admin_by_all_three_namespaces():
    assert make_set("system", "yq", "hdwsh").is_admin()


def test_admin_needs_every_namespace():
    assert not make_set("yq", "hdwsh").is_admin()
    assert not make_set("system", "yq").is_admin()


def test_leaf_permissions_do_not_make_admin():
    # Holding something below a namespace does not grant the namespace itself
    assert not make_set("system:role:add", "yq:user:add", "hdwsh:feedback:query").is_admin()


def test_empty_set_is_not_admin():
    assert not is_admin(PermissionSet())


def test_contains_and_items():
    item = PermissionItem(id=7, name="Query users", permission="yq:user:query")
    ps = PermissionSet([item])
    assert "yq:user:query" in ps
    assert ps.items == [item]
    assert ps.strings == frozenset({"yq:user:query"})
