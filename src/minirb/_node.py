"""Syntax tree nodes consumed by the evaluator.

A tree is built from `Node` objects. Each node carries a tag string and a
tuple of positional arguments. The arguments are either child nodes or plain
Python atoms (names, integers, tuples of names). The allowed tags and the
shape of their arguments are listed in `NODE_TAGS`, which is the single
source of truth for both the front end and the evaluator.

Trees are immutable once built. Hosts that do not want to go through source
text can describe a tree with nested tuples and convert it with `from_sexp`.
"""

__all__ = ["Node", "NODE_TAGS", "from_sexp", "check_node"]

import types

import minirb


# Argument kinds:
#   name   str
#   names  tuple of str
#   int    int
#   node   Node
#   node?  Node or None
#   nodes  tuple of Node
#   node*  any number of trailing Node arguments (must be last)
NODE_TAGS = types.MappingProxyType({
    "defn": ("name", "names", "node"),  # name, params, body
    "defs": ("node", "name", "names", "node"),  # target, name, params, body
    "class": ("name", "node?", "node"),  # name, superclass, body
    "scope": ("node",),  # body
    "block": ("node*",),  # statements
    "lit": ("int",),  # value
    "lvar": ("name",),
    "lasgn": ("name", "node"),
    "masgn": ("names", "nodes"),  # targets, values
    "while": ("node", "node"),  # condition, body
    "ivar": ("name",),
    "iasgn": ("name", "node"),
    "array": ("node*",),
    "call": ("node?", "name", "nodes"),  # receiver, method, arguments
    "return": ("node?",),  # value
    "super": ("node*",),  # arguments
    "zsuper": (),
    "self": (),
    "nil": (),
    "true": (),
    "false": (),
    "const": ("name",),
})


class Node:
    """Immutable syntax tree node.

    Args:
        tag: (str) Construct this node represents
        *args: Positional arguments, shaped according to `NODE_TAGS`
        position: (tuple | None) (line, column, end_line, end_column)

    Attributes:
        tag: (str) Construct this node represents
        args: (tuple) Positional arguments
        position: (tuple | None) Source span, ignored by comparisons
    """

    __slots__ = ("tag", "args", "position")

    def __init__(self, tag, *args, position=None):
        object.__setattr__(self, "tag", tag)
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "position", position)

    def __setattr__(self, name, value):
        raise AttributeError(f"Node is immutable, cannot set {name!r}")

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return self.tag == other.tag and self.args == other.args

    def __hash__(self):
        return hash((self.tag, self.args))

    def __repr__(self):
        args = ", ".join(repr(arg) for arg in self.args)
        return f"Node<{self.tag}>({args})"

    @property
    def kids(self):
        """(list) Child nodes in argument order."""
        kids = []
        for arg in self.args:
            if isinstance(arg, Node):
                kids.append(arg)
            elif isinstance(arg, tuple):
                kids.extend(a for a in arg if isinstance(a, Node))
        return kids

    def to_sexp(self):
        """Convert back into the nested tuple form accepted by `from_sexp`."""
        return (self.tag, *(_arg_to_sexp(arg) for arg in self.args))


def _arg_to_sexp(arg):
    if isinstance(arg, Node):
        return arg.to_sexp()
    if isinstance(arg, tuple):
        return tuple(_arg_to_sexp(a) for a in arg)
    return arg


def check_node(node):
    """Validate that a node's arguments match its tag.

    Args:
        node: (Node) Node to validate

    Raises:
        UnsupportedNode: The tag is not in `NODE_TAGS`
        MalformedTree: The arguments do not match the expected shape
    """
    if not isinstance(node, Node):
        raise minirb.MalformedTree(f"Expected a syntax tree node, got {node!r}")
    kinds = NODE_TAGS.get(node.tag)
    if kinds is None:
        raise minirb.UnsupportedNode(f"Unsupported node tag {node.tag!r}", node)

    args = node.args
    if kinds and kinds[-1] == "node*":
        fixed = kinds[:-1]
        if len(args) < len(fixed):
            raise _malformed(node, kinds)
        rest = args[len(fixed):]
        if not all(isinstance(arg, Node) for arg in rest):
            raise _malformed(node, kinds)
        args = args[:len(fixed)]
        kinds = fixed
    elif len(args) != len(kinds):
        raise _malformed(node, kinds)

    for kind, arg in zip(kinds, args):
        if not _matches(kind, arg):
            raise _malformed(node, kinds)


def _malformed(node, kinds):
    expected = ", ".join(kinds) or "no arguments"
    return minirb.MalformedTree(
        f":{node.tag} expects ({expected}), got {node.args!r}", node
    )


def _matches(kind, arg):
    match kind:
        case "name":
            return isinstance(arg, str)
        case "names":
            return isinstance(arg, tuple) and all(isinstance(a, str) for a in arg)
        case "int":
            return isinstance(arg, int) and not isinstance(arg, bool)
        case "node":
            return isinstance(arg, Node)
        case "node?":
            return arg is None or isinstance(arg, Node)
        case "nodes":
            return isinstance(arg, tuple) and all(isinstance(a, Node) for a in arg)
    return False


def from_sexp(sexp):
    """Build a syntax tree from nested tuples.

    The first item of each tuple is the tag, the rest are its arguments in
    the order given by `NODE_TAGS`. Lists are accepted wherever tuples are.

        from_sexp(("call", ("lit", 1), "+", [("lit", 2)]))

    Tags that are not known are still converted, leaving the evaluator to
    reject them when they are reached.

    Args:
        sexp: (tuple) Nested tuple description of a tree

    Returns:
        (Node) Root node of the tree
    """
    if isinstance(sexp, Node):
        return sexp
    if not isinstance(sexp, (tuple, list)) or not sexp or not isinstance(sexp[0], str):
        raise minirb.MalformedTree(f"Cannot build a node from {sexp!r}")

    tag, *args = sexp
    kinds = NODE_TAGS.get(tag)
    if kinds is None:
        return Node(tag, *(_convert_unknown(arg) for arg in args))

    converted = []
    for index, arg in enumerate(args):
        if kinds and index >= len(kinds) - 1 and kinds[-1] == "node*":
            kind = "node"
        elif index < len(kinds):
            kind = kinds[index]
        else:
            kind = None
        converted.append(_convert_arg(kind, arg))
    # Trailing optional nodes may be left out, as in ("return",)
    missing = kinds[len(converted):]
    if missing and all(kind == "node?" for kind in missing):
        converted.extend(None for _ in missing)
    return Node(tag, *converted)


def _convert_arg(kind, arg):
    match kind:
        case "node":
            return from_sexp(arg)
        case "node?":
            return None if arg is None else from_sexp(arg)
        case "nodes":
            return tuple(from_sexp(a) for a in arg)
        case "names":
            return tuple(arg) if isinstance(arg, list) else arg
    return arg


def _convert_unknown(arg):
    if isinstance(arg, (tuple, list)) and arg and isinstance(arg[0], str):
        return from_sexp(arg)
    return arg
