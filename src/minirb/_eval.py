"""Evaluator for syntax trees.

Each node is evaluated by a generator. When a node needs the value of a
child it yields the child node and receives the child's value back from
`send`. The `Evaluator.drive` loop owns an explicit stack of these
generators, so deeply recursive user programs do not consume the Python
call stack.

    case "lasgn":
        name, expr = node.args
        value = yield expr
        return self.context.set_local(name, value)

Method calls are generators too. `call` and `invoke` are used with
`yield from` inside node generators, and push a `Frame` around the method
body with a with block so the frame is popped however the body finishes.
"""

__all__ = ["Evaluator"]

import logging

import minirb

logger = logging.getLogger(__name__)


class Evaluator:
    """Walks syntax trees against an object space and context.

    Args:
        space: (ObjectSpace) Classes and singletons
        context: (Context) Frame stack for the session
    """

    def __init__(self, space, context):
        self.space = space
        self.context = context

    def __repr__(self):
        return f"Evaluator<{self.context!r}>"

    # === Entry points ===

    def run(self, node):
        """Evaluate a tree and return its value.

        Args:
            node: (Node) Root of the tree

        Returns:
            (RObject) Value of the tree

        Raises:
            EvalError: Evaluation failed
        """
        return self.drive(self.evaluate(node), node)

    def send(self, receiver, name, args):
        """Call a method on a receiver from the host.

        Args:
            receiver: (RObject) Object to call the method on
            name: (str) Method name
            args: (list) Evaluated arguments

        Returns:
            (RObject) Method result
        """
        return self.drive(self.call(receiver, name, list(args)))

    def drive(self, gen, node=None):
        """Run an evaluation generator to completion.

        Generators yield nodes they need evaluated. Each yielded node gets
        its own generator pushed onto the stack; its return value is sent
        back to the generator that asked for it.

        If any generator raises, every suspended generator is closed from
        the innermost out, which unwinds their frames, and the error is
        re-raised with the innermost node attached.

        Args:
            gen: (generator) Evaluation generator to run
            node: (Node | None) Node the generator belongs to

        Returns:
            (RObject) Final value
        """
        stack = [(node, gen)]
        result = None
        try:
            while stack:
                try:
                    request = stack[-1][1].send(result)
                except StopIteration as stop:
                    stack.pop()
                    result = stop.value
                    continue
                stack.append((request, self.evaluate(request)))
                result = None
        except BaseException as error:
            if isinstance(error, minirb.EvalError) and error.node is None:
                error.node = next((n for n, _ in reversed(stack) if n is not None), None)
            while stack:
                stack.pop()[1].close()
            raise
        return result

    # === Node dispatch ===

    def evaluate(self, node):
        """Generator evaluating a single node.

        Args:
            node: (Node) Node to evaluate

        Returns:
            (generator) Yields child nodes, returns the node's value
        """
        minirb.check_node(node)
        return self._evaluate(node)

    def _evaluate(self, node):
        space = self.space
        context = self.context
        args = node.args

        match node.tag:
            case "scope":
                return (yield args[0])

            case "block":
                result = space.nil
                for statement in args:
                    result = yield statement
                return result

            case "lit":
                return space.new_integer(args[0])

            case "self":
                return context.receiver
            case "nil":
                return space.nil
            case "true":
                return space.true
            case "false":
                return space.false

            case "lvar":
                return context.get_local(args[0], space.nil)

            case "lasgn":
                name, expr = args
                value = yield expr
                return context.set_local(name, value)

            case "masgn":
                names, exprs = args
                values = []
                for expr in exprs:
                    values.append((yield expr))
                for index, name in enumerate(names):
                    value = values[index] if index < len(values) else space.nil
                    context.set_local(name, value)
                return space.new_array(values)

            case "ivar":
                return context.receiver.ivars.get(args[0], space.nil)

            case "iasgn":
                name, expr = args
                value = yield expr
                context.receiver.ivars[name] = value
                return value

            case "array":
                items = []
                for kid in args:
                    items.append((yield kid))
                return space.new_array(items)

            case "while":
                condition, body = args
                while space.truthy((yield condition)):
                    yield body
                return space.nil

            case "return":
                if args[0] is None:
                    return space.nil
                return (yield args[0])

            case "const":
                return self.lookup_constant(args[0])

            case "call":
                receiver_node, name, arg_nodes = args
                if receiver_node is None:
                    receiver = context.receiver
                else:
                    receiver = yield receiver_node
                values = []
                for arg in arg_nodes:
                    values.append((yield arg))
                return (yield from self.call(receiver, name, values))

            case "super" | "zsuper":
                frame = context.current
                if frame.method is None or frame.owner is None:
                    raise minirb.NoSuchMethod(
                        frame.receiver, "super", "super called outside of a method"
                    )
                if node.tag == "zsuper":
                    values = list(frame.args)
                else:
                    values = []
                    for arg in args:
                        values.append((yield arg))
                method = space.resolve_method_from(frame.owner.parent, frame.method)
                if method is None:
                    raise minirb.NoSuchMethod(
                        frame.receiver,
                        frame.method,
                        f"super: no superclass method '{frame.method}' for {frame.receiver!r}",
                    )
                return (yield from self.invoke(frame.receiver, method, values))

            case "defn":
                name, params, body = args
                receiver = context.receiver
                target = receiver if isinstance(receiver, minirb.RClass) else receiver.cls
                method = minirb.Method(name, params, body, target, context.cref)
                space.define_method(target, name, method)
                return space.nil

            case "defs":
                target_node, name, params, body = args
                target = yield target_node
                method = minirb.Method(name, params, body, None, context.cref)
                space.define_method(target, name, method, singleton=True)
                return space.nil

            case "class":
                name, parent_node, body = args
                parent = None
                if parent_node is not None:
                    parent = yield parent_node
                    if not isinstance(parent, minirb.RClass) or parent.is_singleton:
                        raise minirb.TypeMismatch(f"Superclass must be a class, got {parent!r}")
                cls = self.open_class(name, parent)
                with context.frame(cls, cref=context.cref + (cls,)):
                    result = yield body
                return result

        # check_node has already rejected any tag without a case above
        raise minirb.UnsupportedNode(f"Unsupported node tag {node.tag!r}", node)

    # === Call protocol ===

    def call(self, receiver, name, args):
        """Generator dispatching a method call.

        When no method resolves and the call is `new` on a class, a new
        instance is allocated and its `initialize` is run with the args.

        Args:
            receiver: (RObject) Object receiving the call
            name: (str) Method name
            args: (list) Evaluated arguments

        Returns:
            (generator) Returns the call's value

        Raises:
            NoSuchMethod: Nothing resolved and this is not a construction
        """
        method = self.space.resolve_method(receiver, name)
        if method is not None:
            return (yield from self.invoke(receiver, method, args))

        if name == "new" and isinstance(receiver, minirb.RClass):
            instance = self.space.allocate(receiver)
            initialize = self.space.resolve_method(instance, "initialize")
            if initialize is not None:
                yield from self.invoke(instance, initialize, args)
            return instance

        raise minirb.NoSuchMethod(receiver, name)

    def invoke(self, receiver, method, args):
        """Generator running a resolved method inside a new frame.

        Parameters bind positionally. Missing arguments are nil, extra
        arguments are ignored.

        Args:
            receiver: (RObject) New receiver
            method: (Method | NativeMethod) Method to run
            args: (list) Evaluated arguments

        Returns:
            (generator) Returns the method's value
        """
        context = self.context
        if isinstance(method, minirb.NativeMethod):
            with context.frame(receiver, method.owner, method.name, args):
                return method.function(self.space, receiver, list(args))

        with context.frame(receiver, method.owner, method.name, args, method.cref):
            for index, param in enumerate(method.params):
                value = args[index] if index < len(args) else self.space.nil
                context.set_local(param, value)
            return (yield method.body)

    # === Helpers ===

    def open_class(self, name, parent):
        """Find or create the class a class definition refers to.

        Args:
            name: (str) Constant name
            parent: (RClass | None) Explicit superclass, if one was given

        Returns:
            (RClass) Existing class when reopening, else a new class

        Raises:
            TypeMismatch: The constant is not a class, or the superclass differs
        """
        namespace = self.context.namespace
        existing = self.space.get_constant(namespace, name)
        if existing is None:
            cls = self.space.new_class(self._qualified(namespace, name), parent)
            return self.space.set_constant(namespace, name, cls)
        if not isinstance(existing, minirb.RClass):
            raise minirb.TypeMismatch(f"{name} is not a class")
        if parent is not None and existing.parent is not parent:
            raise minirb.TypeMismatch(f"Superclass mismatch for class {name}")
        logger.debug("Reopened class %s", existing.name)
        return existing

    def lookup_constant(self, name):
        """Read a constant from the innermost namespace outwards.

        Raises:
            UndefinedConstant: No namespace in the chain binds the name
        """
        for namespace in reversed(self.context.cref):
            value = self.space.get_constant(namespace, name)
            if value is not None:
                return value
        raise minirb.UndefinedConstant(f"Uninitialized constant {name}")

    def _qualified(self, namespace, name):
        if namespace is self.space.object:
            return name
        return f"{namespace.name}::{name}"
