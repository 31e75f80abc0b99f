"""Call frames and the evaluation context.

One `Context` lives for the whole interpreter session. It holds a stack of
`Frame` objects; a frame is pushed when a method is entered or a class body
is evaluated and popped when it finishes, even when it finishes with an
error.
"""

__all__ = ["Frame", "Context"]

from contextlib import contextmanager


class Frame:
    """State for one active call.

    Attributes:
        locals: (dict) Local variable bindings
        receiver: (RObject) Object the code is running against (self)
        owner: (RClass | None) Class that defined the running method
        method: (str | None) Name the running method was called by
        args: (tuple) Evaluated arguments of the call, used by bare super
        cref: (tuple) Namespace classes for constant lookup, outermost first
    """

    __slots__ = ("locals", "receiver", "owner", "method", "args", "cref")

    def __init__(self, locals, receiver, owner, method, args, cref):
        self.locals = locals
        self.receiver = receiver
        self.owner = owner
        self.method = method
        self.args = args
        self.cref = cref

    def __repr__(self):
        where = f"{self.owner.name}#{self.method}" if self.method else "<top>"
        return f"Frame<{where} self={self.receiver!r}>"


class Context:
    """Stack of frames for an interpreter session.

    By default every frame gets a fresh local table, so recursive and
    nested calls cannot see or overwrite each other's locals. With
    `shared_locals` all frames share one flat local table for the whole
    session; receiver, owner and method are still saved and restored
    around every call.

    Args:
        receiver: (RObject) Receiver for top level code
        cref: (tuple) Namespace chain for top level code
        shared_locals: (bool) Share a single local table across calls
    """

    def __init__(self, receiver, cref, shared_locals=False):
        self.shared_locals = shared_locals
        self.frames = [Frame({}, receiver, None, None, (), tuple(cref))]

    def __repr__(self):
        return f"Context<depth={len(self.frames)}>"

    @property
    def current(self):
        """(Frame) Innermost frame."""
        return self.frames[-1]

    @property
    def receiver(self):
        return self.frames[-1].receiver

    @property
    def cref(self):
        return self.frames[-1].cref

    @property
    def namespace(self):
        """(RClass) Innermost namespace, where class definitions are bound."""
        return self.frames[-1].cref[-1]

    def get_local(self, name, default=None):
        return self.frames[-1].locals.get(name, default)

    def set_local(self, name, value):
        self.frames[-1].locals[name] = value
        return value

    @contextmanager
    def frame(self, receiver, owner=None, method=None, args=(), cref=None):
        """Push a frame for the duration of a with block.

        Examples:
            with context.frame(obj, owner=cls, method="size"):
                result = yield body

        Args:
            receiver: (RObject) New receiver
            owner: (RClass | None) Class that defined the running method
            method: (str | None) Name of the running method
            args: (tuple) Evaluated call arguments
            cref: (tuple | None) Namespace chain, defaults to the current one

        Yields:
            (Frame) The pushed frame
        """
        if cref is None:
            cref = self.cref
        locals = self.frames[-1].locals if self.shared_locals else {}
        frame = Frame(locals, receiver, owner, method, tuple(args), tuple(cref))
        self.frames.append(frame)
        try:
            yield frame
        finally:
            self.frames.pop()
