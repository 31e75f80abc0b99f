"""Parse source text into syntax tree nodes.

The grammar lives in `lark/minirb.lark` and is parsed with lark's lalr
parser. The intermediate lark tree is converted top down into `Node` objects
by `_Converter`, which also tracks which names are local variables. Like
Ruby, a bare identifier is a local variable read only after an assignment to
it (or a parameter of the same name) has been seen in the current scope;
otherwise it is a method call on self.

Operator syntax is desugared into method calls:

    a + b        (call a "+" (b))
    a[i] = v     (call a "[]=" (i v))
    n += 1       (lasgn n (call n "+" (1)))
"""

__all__ = ["parse"]

import logging

import lark

import minirb

logger = logging.getLogger(__name__)


def parse(source):
    """Parse source into a syntax tree.

    Args:
        source: (str) Program text

    Returns:
        (Node) A `block` node holding the top level statements

    Raises:
        ParseError: The source is not valid syntax
    """
    parser = _lark_parser("minirb")
    try:
        tree = parser.parse(source)
    except lark.exceptions.UnexpectedInput as e:
        position = (e.line, e.column)
        raise minirb.ParseError(
            f"Syntax error at line {e.line}, column {e.column}: {_describe(e)}", position
        ) from e
    return _Converter().convert(tree)


def _describe(error):
    if isinstance(error, lark.exceptions.UnexpectedToken):
        if error.token.type == "$END":
            return "unexpected end of input"
        return f"unexpected {error.token.value!r}"
    if isinstance(error, lark.exceptions.UnexpectedCharacters):
        return f"unexpected character {error.char!r}"
    return "unexpected input"


_BINARY_OPS = {
    "lt": "<",
    "gt": ">",
    "le": "<=",
    "ge": ">=",
    "eq": "==",
    "add": "+",
    "sub": "-",
    "mul": "*",
}


class _Converter:
    """Convert a lark tree into nodes while tracking local variable scopes."""

    def __init__(self):
        self.scopes = [set()]

    def convert(self, tree):
        """Convert the `start` tree into a top level `block` node."""
        (stmts,) = tree.children
        return self._block(tree, stmts)

    def _block(self, tree, stmts):
        statements = [] if stmts is None else [self._node(kid) for kid in stmts.children]
        return _parsed(tree, "block", *statements)

    def _scoped_body(self, tree, stmts, params=()):
        """Convert a method or class body in a fresh local scope."""
        self.scopes.append(set(params))
        try:
            body = self._block(tree, stmts)
        finally:
            self.scopes.pop()
        return _parsed(tree, "scope", body)

    def _declare(self, name):
        self.scopes[-1].add(name)

    def _is_local(self, name):
        return name in self.scopes[-1]

    def _args(self, tree):
        """Convert an optional `args` or `call_args` tree into a tuple of nodes."""
        if tree is None:
            return ()
        if tree.data == "call_args":
            (tree,) = tree.children
            if tree is None:
                return ()
        return tuple(self._node(kid) for kid in tree.children)

    def _node(self, tree):
        """Convert a single lark tree into a node.

        Args:
            tree: (lark.Tree) Tree to convert

        Returns:
            (Node) Converted node
        """
        if isinstance(tree, lark.Token):
            raise ValueError(f"Unhandled grammar token: {tree}")

        kids = tree.children
        match tree.data:
            # Definitions
            case "def_stmt":
                name_tree, params, stmts = kids
                names = _param_names(params)
                body = self._scoped_body(tree, stmts, names)
                return _parsed(tree, "defn", _method_name(name_tree), names, body)
            case "defs_stmt":
                target, name_tree, params, stmts = kids
                target = self._node(target)
                names = _param_names(params)
                body = self._scoped_body(tree, stmts, names)
                return _parsed(tree, "defs", target, _method_name(name_tree), names, body)
            case "class_stmt":
                name, parent, stmts = kids
                parent = None if parent is None else self._node(parent)
                body = self._scoped_body(tree, stmts)
                return _parsed(tree, "class", name.value, parent, body)

            # Statements
            case "while_stmt":
                condition, stmts = kids
                condition = self._node(condition)
                return _parsed(tree, "while", condition, self._block(tree, stmts))
            case "return_stmt":
                (expr,) = kids
                value = None if expr is None else self._node(expr)
                return _parsed(tree, "return", value)
            case "masgn":
                names = tuple(kid.value for kid in kids if isinstance(kid, lark.Token))
                values = tuple(self._node(kid) for kid in kids if isinstance(kid, lark.Tree))
                for name in names:
                    self._declare(name)
                return _parsed(tree, "masgn", names, values)
            case "lasgn":
                name, expr = kids
                value = self._node(expr)
                self._declare(name.value)
                return _parsed(tree, "lasgn", name.value, value)
            case "iasgn":
                name, expr = kids
                return _parsed(tree, "iasgn", name.value, self._node(expr))
            case "op_lasgn":
                name, op, expr = kids
                current = self._read_local(tree, name.value)
                value = _parsed(tree, "call", current, op.value[0], (self._node(expr),))
                self._declare(name.value)
                return _parsed(tree, "lasgn", name.value, value)
            case "op_iasgn":
                name, op, expr = kids
                current = _parsed(tree, "ivar", name.value)
                value = _parsed(tree, "call", current, op.value[0], (self._node(expr),))
                return _parsed(tree, "iasgn", name.value, value)
            case "index_asgn":
                receiver, index, expr = kids
                args = self._args(index) + (self._node(expr),)
                return _parsed(tree, "call", self._node(receiver), "[]=", args)
            case "attr_asgn":
                receiver, name, expr = kids
                receiver = self._node(receiver)
                return _parsed(tree, "call", receiver, f"{name.value}=", (self._node(expr),))

            # Operators
            case "lt" | "gt" | "le" | "ge" | "eq" | "add" | "sub" | "mul":
                left, right = (self._node(kid) for kid in kids)
                return _parsed(tree, "call", left, _BINARY_OPS[tree.data], (right,))
            case "ne":
                left, right = (self._node(kid) for kid in kids)
                equal = _parsed(tree, "call", left, "==", (right,))
                return _parsed(tree, "call", equal, "!", ())
            case "not_op":
                (operand,) = kids
                return _parsed(tree, "call", self._node(operand), "!", ())

            # Calls
            case "method_call":
                receiver, name, call_args = kids
                receiver = self._node(receiver)
                return _parsed(tree, "call", receiver, name.value, self._args(call_args))
            case "index":
                receiver, index = kids
                receiver = self._node(receiver)
                return _parsed(tree, "call", receiver, "[]", self._args(index))
            case "func_call":
                name, call_args = kids
                return _parsed(tree, "call", None, name.value, self._args(call_args))
            case "super_call":
                (call_args,) = kids
                if call_args is None:
                    return _parsed(tree, "zsuper")
                return _parsed(tree, "super", *self._args(call_args))

            # Values
            case "lit":
                return _parsed(tree, "lit", int(kids[0].value))
            case "neg_lit":
                return _parsed(tree, "lit", -int(kids[0].value))
            case "name_ref":
                return self._read_local(tree, kids[0].value)
            case "ivar":
                return _parsed(tree, "ivar", kids[0].value)
            case "const":
                return _parsed(tree, "const", kids[0].value)
            case "self_ref":
                return _parsed(tree, "self")
            case "nil" | "true" | "false":
                return _parsed(tree, tree.data)
            case "array":
                (items,) = kids
                return _parsed(tree, "array", *self._args(items))

            case _:
                raise ValueError(f"Unhandled grammar rule: {tree.data}")

    def _read_local(self, tree, name):
        if self._is_local(name):
            return _parsed(tree, "lvar", name)
        return _parsed(tree, "call", None, name, ())


def _param_names(params):
    if params is None:
        return ()
    (names,) = params.children
    if names is None:
        return ()
    return tuple(token.value for token in names.children)


def _method_name(tree):
    name, *setter = tree.children
    if any(token is not None for token in setter):
        return f"{name.value}="
    return name.value


def _pos_from_lark(tree):
    """Create the position tuple from a lark Tree."""
    meta = tree.meta
    if meta.empty:
        return None
    return (
        meta.line,
        meta.column,
        meta.end_line or meta.line,
        meta.end_column or meta.column,
    )


def _parsed(tree, tag, *args):
    """Create a node with position from a lark tree."""
    return minirb.Node(tag, *args, position=_pos_from_lark(tree))


_parsers = {}


def _lark_parser(name):
    """Get globally shared lark parser.

    Args:
        name: (str) name of the grammar file (without .lark)

    Returns:
        (lark.Lark) Parser instance
    """
    parser = _parsers.get(name)
    if parser is not None:
        return parser

    path = f"lark/{name}.lark"
    parser = lark.Lark.open(
        path,
        rel_to=__file__,
        parser="lalr",
        propagate_positions=True,
        maybe_placeholders=True,
    )
    logger.debug("Built %s parser", name)
    _parsers[name] = parser
    return parser
