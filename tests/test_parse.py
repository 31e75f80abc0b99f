"""
Source text parsing into syntax tree nodes.

Checks the desugaring of operators and assignments into calls, the
local variable versus method call decision for bare identifiers, and
syntax error reporting.
"""

import pytest

import minirb
import rbtest


def parse_one(source):
    """Parse source holding a single statement and return that statement."""
    block = minirb.parse(source)
    assert block.tag == "block"
    assert len(block.args) == 1
    return block.args[0].to_sexp()


@rbtest.params(
    "source sexp",
    lit=("42", ("lit", 42)),
    neg=("-3", ("lit", -3)),
    nil=("nil", ("nil",)),
    true=("true", ("true",)),
    self=("self", ("self",)),
    ivar=("@x", ("ivar", "@x")),
    const=("Foo", ("const", "Foo")),
    array=("[1, 2]", ("array", ("lit", 1), ("lit", 2))),
    empty_array=("[]", ("array",)),
    add=("1 + 2", ("call", ("lit", 1), "+", (("lit", 2),))),
    lt=("1 < 2", ("call", ("lit", 1), "<", (("lit", 2),))),
    ne=("1 != 2", ("call", ("call", ("lit", 1), "==", (("lit", 2),)), "!", ())),
    not_=("!nil", ("call", ("nil",), "!", ())),
    precedence=(
        "1 + 2 * 3",
        ("call", ("lit", 1), "+", (("call", ("lit", 2), "*", (("lit", 3),)),)),
    ),
    left_assoc=(
        "1 - 2 - 3",
        ("call", ("call", ("lit", 1), "-", (("lit", 2),)), "-", (("lit", 3),)),
    ),
    func=("f(1)", ("call", None, "f", (("lit", 1),))),
    vcall=("f", ("call", None, "f", ())),
    method=("Foo.new", ("call", ("const", "Foo"), "new", ())),
    method_args=("Foo.new(1, 2)", ("call", ("const", "Foo"), "new", (("lit", 1), ("lit", 2)))),
    index=("@a[0]", ("call", ("ivar", "@a"), "[]", (("lit", 0),))),
    index_asgn=("@a[0] = 1", ("call", ("ivar", "@a"), "[]=", (("lit", 0), ("lit", 1)))),
    attr_asgn=("@a.size = 1", ("call", ("ivar", "@a"), "size=", (("lit", 1),))),
    iasgn=("@a = 1", ("iasgn", "@a", ("lit", 1))),
    op_iasgn=("@a += 1", ("iasgn", "@a", ("call", ("ivar", "@a"), "+", (("lit", 1),)))),
    zsuper=("super", ("zsuper",)),
    super_empty=("super()", ("super",)),
    super_args=("super(1)", ("super", ("lit", 1))),
    ret=("return 1", ("return", ("lit", 1))),
    ret_empty=("return", ("return", None)),
    predicate=("x.nil?", ("call", ("call", None, "x", ()), "nil?", ())),
)
def test_expressions(key, source, sexp):
    assert parse_one(source) == sexp


def test_local_after_assignment():
    block = minirb.parse("x = 1\nx")
    assert block.to_sexp() == ("block", ("lasgn", "x", ("lit", 1)), ("lvar", "x"))


def test_call_before_assignment():
    block = minirb.parse("x\nx = 1")
    assert block.args[0].to_sexp() == ("call", None, "x", ())


def test_op_assign_local():
    block = minirb.parse("n = 1\nn *= 2")
    assert block.args[1].to_sexp() == (
        "lasgn", "n", ("call", ("lvar", "n"), "*", (("lit", 2),))
    )


def test_masgn():
    block = minirb.parse("a, b = 1, 2\nb")
    assert block.to_sexp() == (
        "block",
        ("masgn", ("a", "b"), (("lit", 1), ("lit", 2))),
        ("lvar", "b"),
    )


def test_def():
    block = minirb.parse("def add(a, b)\n  a + b\nend")
    assert block.args[0].to_sexp() == (
        "defn",
        "add",
        ("a", "b"),
        ("scope", ("block", ("call", ("lvar", "a"), "+", (("lvar", "b"),)))),
    )


def test_def_without_params():
    block = minirb.parse("def nothing\nend")
    assert block.args[0].to_sexp() == ("defn", "nothing", (), ("scope", ("block",)))


def test_def_setter():
    block = minirb.parse("def value=(v)\n  @value = v\nend")
    assert block.args[0].args[0] == "value="


def test_defs():
    block = minirb.parse("def self.make\n  1\nend")
    assert block.args[0].to_sexp() == (
        "defs", ("self",), "make", (), ("scope", ("block", ("lit", 1)))
    )


def test_method_scope_hides_outer_locals():
    block = minirb.parse("x = 1\ndef f\n  x\nend")
    body = block.args[1].args[2]
    assert body.to_sexp() == ("scope", ("block", ("call", None, "x", ())))


def test_class():
    block = minirb.parse("class B < A\n  def f\n  end\nend")
    tag, name, parent, body = block.args[0].to_sexp()
    assert (tag, name, parent) == ("class", "B", ("const", "A"))
    assert body == ("scope", ("block", ("defn", "f", (), ("scope", ("block",)))))


def test_class_without_parent():
    block = minirb.parse("class A; end")
    assert block.args[0].to_sexp() == ("class", "A", None, ("scope", ("block",)))


def test_while():
    source = "i = 0\nwhile i < 3 do\n  i += 1\nend"
    loop = minirb.parse(source).args[1].to_sexp()
    assert loop == (
        "while",
        ("call", ("lvar", "i"), "<", (("lit", 3),)),
        ("block", ("lasgn", "i", ("call", ("lvar", "i"), "+", (("lit", 1),)))),
    )


def test_comments_and_blank_lines():
    source = """
    # leading comment

    a = 1  # trailing comment
    ; b = 2

    """
    block = minirb.parse(source)
    assert [node.tag for node in block.args] == ["lasgn", "lasgn"]


def test_empty_program():
    assert minirb.parse("").to_sexp() == ("block",)
    assert minirb.run("") is None


def test_positions():
    block = minirb.parse("x = 1\ny = x + 2")
    line, column, *_ = block.args[1].position
    assert (line, column) == (2, 1)


@rbtest.params(
    "source",
    unclosed=("def f\n  1\n",),
    stray=("1 +",),
    bad_char=("1 $ 2",),
    chained_compare=("1 < 2 < 3",),
)
def test_syntax_errors(key, source):
    with pytest.raises(minirb.ParseError) as info:
        minirb.parse(source)
    assert "Syntax error" in info.value.message
    assert info.value.position is not None


def test_error_position_points_at_token():
    with pytest.raises(minirb.ParseError) as info:
        minirb.parse("a = 1\nb = )")
    assert info.value.position == (2, 5)
