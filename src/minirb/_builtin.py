"""Native methods for the root classes.

Natives are registered once per process with the `native` decorator and the
finished registry is frozen into `NATIVES`. Each new `ObjectSpace` copies
them into its own root classes with `install_natives`, where they sit in the
same method tables as user methods. A user definition with the same name
replaces the native for that session only.

Every native is called as `function(space, receiver, args)`.
"""

__all__ = ["NATIVES", "native", "install_natives"]

import types

import minirb


_registry = {}


def native(class_name, *names):
    """Register a Python function as a native method.

    Args:
        class_name: (str) Root class that owns the method
        *names: (str) Method names to register the function under
    """

    def register(func):
        table = _registry.setdefault(class_name, {})
        for name in names:
            table[name] = func
        return func

    return register


def install_natives(space):
    """Copy the native registry into the root classes of a space.

    Args:
        space: (ObjectSpace) Freshly bootstrapped space
    """
    for class_name, table in NATIVES.items():
        cls = space.classes[class_name]
        for name, func in table.items():
            space.define_method(cls, name, minirb.NativeMethod(name, func, cls))


def _argument(space, args, index=0):
    """Positional argument with missing values read as nil."""
    return args[index] if index < len(args) else space.nil


def _integer_operand(space, args, op):
    other = _argument(space, args)
    if not isinstance(other, minirb.RInteger):
        raise minirb.TypeMismatch(f"{other!r} can't be coerced into Integer for '{op}'")
    return other.value


def _index_operand(space, receiver, args):
    index = _argument(space, args)
    if not isinstance(index, minirb.RInteger):
        raise minirb.TypeMismatch(f"No implicit conversion of {index!r} into Integer")
    index = index.value
    if index < 0 or index >= receiver.size:
        raise minirb.ArrayOutOfBounds(index, receiver.size)
    return index


# === Object ===


@native("Object", "initialize")
def _object_initialize(space, receiver, args):
    return space.nil


@native("Object", "class")
def _object_class(space, receiver, args):
    return receiver.cls


@native("Object", "==", "equal?")
def _object_equal(space, receiver, args):
    return space.boolean(receiver is _argument(space, args))


@native("Object", "!")
def _object_not(space, receiver, args):
    return space.boolean(not space.truthy(receiver))


@native("Object", "nil?")
def _object_is_nil(space, receiver, args):
    return space.boolean(receiver is space.nil)


# === Class ===


@native("Class", "superclass")
def _class_superclass(space, receiver, args):
    parent = receiver.parent
    while parent is not None and parent.is_singleton:
        parent = parent.parent
    return parent if parent is not None else space.nil


@native("Class", "allocate")
def _class_allocate(space, receiver, args):
    return space.allocate(receiver)


# === Integer ===


@native("Integer", "+")
def _int_add(space, receiver, args):
    return space.new_integer(receiver.value + _integer_operand(space, args, "+"))


@native("Integer", "-")
def _int_sub(space, receiver, args):
    return space.new_integer(receiver.value - _integer_operand(space, args, "-"))


@native("Integer", "*")
def _int_mul(space, receiver, args):
    return space.new_integer(receiver.value * _integer_operand(space, args, "*"))


@native("Integer", "<")
def _int_lt(space, receiver, args):
    return space.boolean(receiver.value < _integer_operand(space, args, "<"))


@native("Integer", ">")
def _int_gt(space, receiver, args):
    return space.boolean(receiver.value > _integer_operand(space, args, ">"))


@native("Integer", "<=")
def _int_le(space, receiver, args):
    return space.boolean(receiver.value <= _integer_operand(space, args, "<="))


@native("Integer", ">=")
def _int_ge(space, receiver, args):
    return space.boolean(receiver.value >= _integer_operand(space, args, ">="))


@native("Integer", "==")
def _int_eq(space, receiver, args):
    other = _argument(space, args)
    if not isinstance(other, minirb.RInteger):
        return space.false
    return space.boolean(receiver.value == other.value)


# === Array ===


@native("Array", "size", "length")
def _array_size(space, receiver, args):
    return space.new_integer(receiver.size)


@native("Array", "[]")
def _array_get(space, receiver, args):
    return receiver.items[_index_operand(space, receiver, args)]


@native("Array", "[]=")
def _array_set(space, receiver, args):
    index = _index_operand(space, receiver, args)
    value = _argument(space, args, 1)
    receiver.items[index] = value
    return value


NATIVES = types.MappingProxyType(
    {name: types.MappingProxyType(table) for name, table in _registry.items()}
)
