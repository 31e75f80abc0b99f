"""Error classes and helpers"""

__all__ = [
    "EvalError",
    "UnsupportedNode",
    "MalformedTree",
    "NoSuchMethod",
    "ArrayOutOfBounds",
    "TypeMismatch",
    "UndefinedConstant",
    "ParseError",
]


class EvalError(Exception):
    """Error evaluating a syntax tree.

    Every evaluation error is fatal to the `run` or `call` that raised it.
    The evaluator attaches the innermost node it was working on when the
    error escapes, so messages can point back at the source.

    Args:
        message: (str) Error description
        node: (Node | None) Node being evaluated when the error happened

    Attributes:
        message: (str) Error description
        node: (Node | None) Node being evaluated when the error happened
    """

    def __init__(self, message, node=None):
        self.message = message
        self.node = node
        super().__init__(message)

    def __str__(self):
        position = getattr(self.node, "position", None)
        if position:
            return f"{self.message} (line {position[0]}, column {position[1]})"
        return self.message


class UnsupportedNode(EvalError):
    """Node tag is not one the evaluator understands."""


class MalformedTree(EvalError):
    """Node arguments do not have the shape its tag requires."""


class NoSuchMethod(EvalError):
    """Method resolution failed for a receiver.

    Args:
        receiver: (RObject) Object the method was looked up on
        method: (str) Name of the missing method
        message: (str | None) Override the default message
    """

    def __init__(self, receiver, method, message=None):
        self.receiver = receiver
        self.method = method
        if message is None:
            message = f"undefined method '{method}' for {receiver!r}"
        super().__init__(message)


class ArrayOutOfBounds(EvalError):
    """Array index is negative or past the end of the array.

    Args:
        index: (int) Requested index
        size: (int) Size of the array
    """

    def __init__(self, index, size):
        self.index = index
        self.size = size
        super().__init__(f"Array bounds: index {index} outside array of size {size}")


class TypeMismatch(EvalError):
    """Operation was given an object of the wrong class."""


class UndefinedConstant(EvalError):
    """Constant lookup found nothing along the namespace chain."""


class ParseError(Exception):
    """Exception raised for parsing errors.

    Args:
        message: (str) Error description
        position: (tuple | None) Optional (line, column) where error occurred

    Attributes:
        message: (str) Error description
        position: (tuple | None) (line, column) where error occurred
    """

    def __init__(self, message, position=None):
        self.message = message
        self.position = position
        super().__init__(message)
