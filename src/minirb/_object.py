"""Runtime object model.

Everything the evaluator touches is an `RObject`: classes, instances,
integers, arrays and the nil/true/false singletons. Dispatch never has to ask
whether a value is primitive, because primitives carry a class like any
other object and their operations live in ordinary method tables.
"""

__all__ = ["RObject", "RClass", "RInteger", "RArray", "Method", "NativeMethod"]

from dataclasses import dataclass
from typing import Any, Callable


class RObject:
    """An object with identity.

    Args:
        cls: (RClass | None) Class of the object, only None while bootstrapping

    Attributes:
        cls: (RClass) Class of the object
        eigenclass: (RClass | None) Singleton class, created on demand
        ivars: (dict) Instance variables by name (including the leading @)
        constants: (dict) Constants by name when this object is a namespace
    """

    __slots__ = ("cls", "eigenclass", "ivars", "constants")

    def __init__(self, cls):
        self.cls = cls
        self.eigenclass = None
        self.ivars = {}
        self.constants = {}

    def __repr__(self):
        name = self.cls.name if self.cls is not None else "?"
        return f"{name}<{id(self):#x}>"

    @property
    def dispatch_class(self):
        """(RClass) First class searched when resolving methods."""
        return self.eigenclass if self.eigenclass is not None else self.cls


class RClass(RObject):
    """A class, which is itself an object.

    Eigenclasses are classes too. They are attached to exactly one object
    and sit between that object and its ordinary class during method
    resolution.

    Args:
        name: (str) Diagnostic name
        parent: (RClass | None) Superclass, None only for the root class
        cls: (RClass | None) Class of this class, normally `Class`
        attached: (RObject | None) Owner object when this is an eigenclass

    Attributes:
        name: (str) Diagnostic name
        parent: (RClass | None) Superclass
        methods: (dict) Method table, name -> Method | NativeMethod
        attached: (RObject | None) Owner object when this is an eigenclass
    """

    __slots__ = ("name", "parent", "methods", "attached")

    def __init__(self, name, parent, cls=None, attached=None):
        super().__init__(cls)
        self.name = name
        self.parent = parent
        self.methods = {}
        self.attached = attached

    def __repr__(self):
        return f"Class<{self.name}>"

    @property
    def is_singleton(self):
        """(bool) This class is an eigenclass."""
        return self.attached is not None

    def ancestors(self):
        """Iterate this class and its parents up to the root."""
        cls = self
        while cls is not None:
            yield cls
            cls = cls.parent

    def lookup(self, name):
        """Find a method by name in this class or its ancestors.

        Args:
            name: (str) Method name

        Returns:
            (Method | NativeMethod | None) First match, or None
        """
        for cls in self.ancestors():
            method = cls.methods.get(name)
            if method is not None:
                return method
        return None

    def inherits_from(self, other):
        """(bool) `other` appears in this class's ancestor chain."""
        return any(cls is other for cls in self.ancestors())


class RInteger(RObject):
    """Integer value object."""

    __slots__ = ("value",)

    def __init__(self, cls, value):
        super().__init__(cls)
        self.value = value

    def __repr__(self):
        return f"Integer<{self.value}>"


class RArray(RObject):
    """Array value object.

    The size is fixed when the array is built. Elements can be replaced
    through an index but the array never grows or shrinks.
    """

    __slots__ = ("items",)

    def __init__(self, cls, items):
        super().__init__(cls)
        self.items = list(items)

    def __repr__(self):
        return f"Array<{len(self.items)}>"

    @property
    def size(self):
        return len(self.items)


@dataclass(frozen=True)
class Method:
    """User defined method.

    Attributes:
        name: (str) Method name
        params: (tuple) Parameter names in call order
        body: (Node) Unevaluated body
        owner: (RClass | None) Class whose table holds the method
        cref: (tuple) Namespace classes in effect where it was defined
    """

    name: str
    params: tuple
    body: Any
    owner: Any = None
    cref: tuple = ()


@dataclass(frozen=True)
class NativeMethod:
    """Method backed by a Python function.

    The function is called as `function(space, receiver, args)` and must
    return an `RObject`.

    Attributes:
        name: (str) Method name
        function: (callable) Implementation
        owner: (RClass | None) Class whose table holds the method
    """

    name: str
    function: Callable
    owner: Any = None
