"""Object space: root classes and the operations on the class hierarchy.

An `ObjectSpace` owns every class and singleton an interpreter session can
see. Each session builds its own space so user code that reopens a root
class (for example defining a top level method, which lands on `Object`)
never leaks into another session.
"""

__all__ = ["ObjectSpace", "ROOT_CLASSES"]

import dataclasses
import logging

import minirb

logger = logging.getLogger(__name__)


# Root classes in bootstrap order with the name of their parent
ROOT_CLASSES = (
    ("Object", None),
    ("Module", "Object"),
    ("Class", "Module"),
    ("Array", "Object"),
    ("Integer", "Object"),
    ("NilClass", "Object"),
    ("TrueClass", "Object"),
    ("FalseClass", "Object"),
)


class ObjectSpace:
    """Bootstrapped root classes and singletons for one session.

    Initialization happens in a fixed order:

    1. Every root in `ROOT_CLASSES` is allocated with its parent but no
       class, since `Class` does not exist yet when `Object` is made.
    2. Every root then gets `Class` as its class. This closes the cycle
       where `Class` is its own class.
    3. `nil`, `true`, `false` and the top level `main` object are allocated.
    4. Every root class is bound as a constant on `Object`.
    5. The native method table is installed into the root classes.

    Nothing outside this class rewires parent pointers, so every parent
    chain ends at `Object`.

    Attributes:
        classes: (dict) Root classes by name
        object, module, klass, array, integer: (RClass) Frequently used roots
        primitives: (tuple) Roots whose instances are never made with `new`
        nil, true, false: (RObject) Singleton values
        main: (RObject) Receiver for top level code
    """

    def __init__(self):
        self.classes = {}
        for name, parent in ROOT_CLASSES:
            parent_cls = self.classes[parent] if parent else None
            self.classes[name] = minirb.RClass(name, parent_cls)

        self.object = self.classes["Object"]
        self.module = self.classes["Module"]
        self.klass = self.classes["Class"]
        self.array = self.classes["Array"]
        self.integer = self.classes["Integer"]
        for cls in self.classes.values():
            cls.cls = self.klass
        self.primitives = tuple(
            self.classes[name]
            for name in ("Integer", "Array", "NilClass", "TrueClass", "FalseClass")
        )

        self.nil = minirb.RObject(self.classes["NilClass"])
        self.true = minirb.RObject(self.classes["TrueClass"])
        self.false = minirb.RObject(self.classes["FalseClass"])
        self.main = minirb.RObject(self.object)

        for name, cls in self.classes.items():
            self.set_constant(self.object, name, cls)

        minirb.install_natives(self)
        logger.debug("Bootstrapped object space with %d root classes", len(self.classes))

    def __repr__(self):
        return f"ObjectSpace<{len(self.classes)} roots>"

    # === Allocation ===

    def new_class(self, name, parent=None):
        """Create a new ordinary class.

        Args:
            name: (str) Diagnostic name
            parent: (RClass | None) Superclass, defaults to `Object`

        Returns:
            (RClass) The new class
        """
        if parent is None:
            parent = self.object
        cls = minirb.RClass(name, parent, cls=self.klass)
        logger.debug("Created class %s < %s", name, parent.name)
        return cls

    def allocate(self, cls):
        """Allocate a blank instance of a user or generic class.

        Args:
            cls: (RClass) Class to instantiate

        Returns:
            (RObject) New instance

        Raises:
            TypeMismatch: The class is an eigenclass or a primitive class
        """
        if cls.is_singleton:
            raise minirb.TypeMismatch(f"Cannot create an instance of singleton {cls!r}")
        for primitive in self.primitives:
            if cls.inherits_from(primitive):
                raise minirb.TypeMismatch(f"Cannot allocate {cls.name} instances with new")
        if cls.inherits_from(self.module):
            raise minirb.TypeMismatch("Classes are created with a class definition")
        return minirb.RObject(cls)

    def new_integer(self, value):
        return minirb.RInteger(self.integer, value)

    def new_array(self, items):
        return minirb.RArray(self.array, items)

    def boolean(self, flag):
        """(RObject) The `true` or `false` singleton for a Python bool."""
        return self.true if flag else self.false

    def truthy(self, value):
        """(bool) Only `nil` and `false` are falsy."""
        return value is not self.nil and value is not self.false

    # === Methods ===

    def eigenclass(self, obj):
        """Get the singleton class for an object, creating it once.

        The eigenclass inherits from the object's class, so resolution that
        starts at the eigenclass continues through the ordinary hierarchy.

        Args:
            obj: (RObject) Owner of the eigenclass

        Returns:
            (RClass) The object's eigenclass
        """
        if obj.eigenclass is None:
            obj.eigenclass = minirb.RClass(
                f"#<Class:{obj!r}>", obj.cls, cls=self.klass, attached=obj
            )
            logger.debug("Created eigenclass for %r", obj)
        return obj.eigenclass

    def define_method(self, owner, name, method, singleton=False):
        """Add a method to a method table.

        A later definition with the same name replaces the earlier one.

        Args:
            owner: (RObject) Class to define on, or any object when singleton
            name: (str) Method name
            method: (Method | NativeMethod) Method to store
            singleton: (bool) Define on the eigenclass of `owner` instead

        Returns:
            (Method | NativeMethod) The stored method, bound to its owner class
        """
        target = self.eigenclass(owner) if singleton else owner
        if method.owner is not target or method.name != name:
            method = dataclasses.replace(method, name=name, owner=target)
        target.methods[name] = method
        logger.debug("Defined %s#%s", target.name, name)
        return method

    def resolve_method(self, receiver, name):
        """Find the method a call on `receiver` dispatches to.

        Search order is the receiver's eigenclass, its class, then each
        parent up to the root.

        Args:
            receiver: (RObject) Object receiving the call
            name: (str) Method name

        Returns:
            (Method | NativeMethod | None) Resolved method or None
        """
        return self.resolve_method_from(receiver.dispatch_class, name)

    def resolve_method_from(self, cls, name):
        """Find a method searching from `cls` upwards.

        Args:
            cls: (RClass | None) First class to search
            name: (str) Method name

        Returns:
            (Method | NativeMethod | None) Resolved method or None
        """
        if cls is None:
            return None
        return cls.lookup(name)

    # === Constants ===

    def get_constant(self, owner, name):
        """Read a constant from one namespace, without searching ancestors.

        Returns:
            (RObject | None) Bound value or None
        """
        return owner.constants.get(name)

    def set_constant(self, owner, name, value):
        owner.constants[name] = value
        return value
