"""Syntax tree nodes, shape validation and tuple conversion."""

import pytest

import minirb
import rbtest


def test_node_is_immutable():
    node = minirb.Node("lit", 1)
    with pytest.raises(AttributeError):
        node.tag = "nil"


def test_equality_ignores_position():
    first = minirb.Node("lit", 1, position=(1, 1, 1, 2))
    second = minirb.Node("lit", 1)
    assert first == second
    assert hash(first) == hash(second)
    assert minirb.Node("lit", 2) != second


def test_repr():
    assert repr(minirb.Node("lvar", "x")) == "Node<lvar>('x')"


def test_from_sexp():
    node = rbtest.tree(("call", ("lit", 1), "+", [("lit", 2)]))
    assert node.tag == "call"
    receiver, name, args = node.args
    assert receiver == minirb.Node("lit", 1)
    assert name == "+"
    assert args == (minirb.Node("lit", 2),)
    assert node.kids == [receiver, args[0]]


def test_from_sexp_round_trip():
    sexp = ("defn", "f", ("a", "b"), ("scope", ("block", ("lvar", "a"), ("lvar", "b"))))
    assert rbtest.tree(sexp).to_sexp() == sexp


def test_from_sexp_optional_return():
    node = rbtest.tree(("return",))
    assert node.args == (None,)
    minirb.check_node(node)


@rbtest.params(
    "sexp",
    lit=(("lit", 1),),
    nil=(("nil",),),
    empty_block=(("block",),),
    call=(("call", None, "f", ()),),
    klass=(("class", "A", None, ("nil",)),),
    masgn=(("masgn", ("a", "b"), (("lit", 1),)),),
    zsuper=(("zsuper",),),
    names=(("defn", "f", ("a", "b"), ("nil",)),),
)
def test_check_node_accepts(key, sexp):
    minirb.check_node(rbtest.tree(sexp))


@rbtest.params(
    "node",
    scope_empty=(minirb.Node("scope"),),
    scope_two=(minirb.Node("scope", minirb.Node("nil"), minirb.Node("nil")),),
    lit_str=(minirb.Node("lit", "1"),),
    lit_bool=(minirb.Node("lit", True),),
    lit_missing=(minirb.Node("lit"),),
    lvar_extra=(minirb.Node("lvar", "x", "y"),),
    call_args=(minirb.Node("call", None, "f", [minirb.Node("nil")]),),
    block_atom=(minirb.Node("block", 1),),
    defn_names=(minirb.Node("defn", "f", ("a", 1), minirb.Node("nil")),),
)
def test_check_node_malformed(key, node):
    with pytest.raises(minirb.MalformedTree):
        minirb.check_node(node)


def test_check_node_not_a_node():
    with pytest.raises(minirb.MalformedTree):
        minirb.check_node(("lit", 1))


def test_unknown_tag_rejected_when_evaluated():
    tree = rbtest.tree(("block", ("lit", 1), ("yield", ("lit", 2))))
    assert tree.args[1].tag == "yield"
    with pytest.raises(minirb.UnsupportedNode, match="yield") as info:
        minirb.run(tree)
    assert info.value.node.tag == "yield"


def test_malformed_reported_when_evaluated():
    with pytest.raises(minirb.MalformedTree) as info:
        minirb.run(minirb.Node("block", minirb.Node("lasgn", "x")))
    assert info.value.node.tag == "lasgn"


def test_from_sexp_rejects_garbage():
    with pytest.raises(minirb.MalformedTree):
        minirb.from_sexp(42)
    with pytest.raises(minirb.MalformedTree):
        minirb.from_sexp(())


def test_evaluation_leaves_tree_unchanged():
    sexp = ("block", ("lasgn", "x", ("lit", 1)), ("while", ("false",), ("lvar", "x")))
    tree = rbtest.tree(sexp)
    minirb.run(tree)
    assert tree.to_sexp() == sexp


def test_tag_table_is_frozen():
    with pytest.raises(TypeError):
        minirb.NODE_TAGS["yield"] = ("node",)
    assert "yield" not in minirb.NODE_TAGS
