"""Interpreter session and host entry points."""

__all__ = ["Interp", "run"]

import minirb


class Interp:
    """Interpreter and state for one minirb session.

    Creating an `Interp` bootstraps a fresh object space. Programs run with
    `run` accumulate definitions in that space, so a host can load a program
    once and then call into it repeatedly.

        interp = minirb.Interp()
        interp.run("def double(x)\\n x * 2\\nend")
        interp.to_python(interp.call("double", 21))  # 42

    Args:
        shared_locals: (bool) Share one local variable table across all
            calls instead of giving each call its own frame

    Attributes:
        space: (ObjectSpace) Classes and singletons for the session
        context: (Context) Frame stack for the session
        evaluator: (Evaluator) Evaluator bound to the space and context
    """

    def __init__(self, shared_locals=False):
        self.space = minirb.ObjectSpace()
        self.context = minirb.Context(
            self.space.main, (self.space.object,), shared_locals=shared_locals
        )
        self.evaluator = minirb.Evaluator(self.space, self.context)

    def __repr__(self):
        return f"Interp<{self.context!r}>"

    # === Evaluation ===

    def run(self, code):
        """Evaluate a program in this session.

        Args:
            code: (str | Node | tuple) Source text, syntax tree, or a tree
                in nested tuple form

        Returns:
            (RObject) Value of the last top level statement
        """
        return self.evaluator.run(self._tree(code))

    def call(self, name, *args):
        """Call a top level method by name.

        Arguments that are not runtime objects are converted with
        `from_python`.

        Args:
            name: (str) Method name
            *args: Arguments for the method

        Returns:
            (RObject) Method result
        """
        return self.send(self.space.main, name, *args)

    def send(self, receiver, name, *args):
        """Call a method on any runtime object.

        Args:
            receiver: (RObject) Object receiving the call
            name: (str) Method name
            *args: Arguments, converted with `from_python` when needed

        Returns:
            (RObject) Method result
        """
        values = [self.from_python(arg) for arg in args]
        return self.evaluator.send(receiver, name, values)

    def instance_eval(self, obj, code):
        """Evaluate code with `obj` as the receiver.

        Args:
            obj: (RObject) Receiver for the code
            code: (str | Node | tuple) Code to evaluate

        Returns:
            (RObject) Value of the code
        """
        tree = self._tree(code)
        with self.context.frame(obj):
            return self.evaluator.run(tree)

    # === Construction and reflection ===

    def lookup_class(self, name):
        """Find a class bound as a constant on `Object`.

        Args:
            name: (str) Class name

        Returns:
            (RClass) The class

        Raises:
            UndefinedConstant: No class is bound under the name
        """
        cls = self.space.get_constant(self.space.object, name)
        if not isinstance(cls, minirb.RClass):
            raise minirb.UndefinedConstant(f"Uninitialized constant {name}")
        return cls

    def new_object(self, cls, *args):
        """Construct an instance, running its initialize method.

        Args:
            cls: (str | RClass) Class or the name of a top level class
            *args: Arguments for initialize

        Returns:
            (RObject) The new instance
        """
        if isinstance(cls, str):
            cls = self.lookup_class(cls)
        return self.send(cls, "new", *args)

    def integer(self, value):
        return self.space.new_integer(int(value))

    def array(self, items):
        return self.space.new_array(self.from_python(item) for item in items)

    def ivar(self, obj, name):
        """Read an instance variable, returning nil when it is unset.

        Args:
            obj: (RObject) Object to read from
            name: (str) Variable name, with or without the leading @
        """
        if not name.startswith("@"):
            name = f"@{name}"
        return obj.ivars.get(name, self.space.nil)

    def from_python(self, value):
        """Convert a Python value into a runtime object.

        Supports None, bool, int, and lists or tuples of those. Runtime
        objects are returned unchanged.

        Raises:
            TypeError: The value has no runtime equivalent
        """
        if isinstance(value, minirb.RObject):
            return value
        if value is None:
            return self.space.nil
        if isinstance(value, bool):
            return self.space.boolean(value)
        if isinstance(value, int):
            return self.space.new_integer(value)
        if isinstance(value, (list, tuple)):
            return self.array(value)
        raise TypeError(f"Cannot convert {type(value).__name__} to a minirb object")

    def to_python(self, value):
        """Convert a runtime object into a Python value.

        Integers, arrays, nil, true and false are converted. Any other
        object is returned as is.
        """
        if isinstance(value, minirb.RInteger):
            return value.value
        if isinstance(value, minirb.RArray):
            return [self.to_python(item) for item in value.items]
        if value is self.space.nil:
            return None
        if value is self.space.true:
            return True
        if value is self.space.false:
            return False
        return value

    def _tree(self, code):
        if isinstance(code, str):
            return minirb.parse(code)
        if isinstance(code, (tuple, list)):
            return minirb.from_sexp(code)
        return code


def run(code, shared_locals=False):
    """Evaluate a program against a fresh bootstrap state.

    Args:
        code: (str | Node | tuple) Program to evaluate
        shared_locals: (bool) Share one local table across calls

    Returns:
        (object) Final top level value converted with `Interp.to_python`
    """
    interp = Interp(shared_locals=shared_locals)
    return interp.to_python(interp.run(code))
