"""Unit testing quality of life and readability helpers for minirb tests."""

import textwrap

import pytest

import minirb


def params(names, /, **cases):
    """Simplified parametrize decorator for test cases.

    Args:
        names: Space or comma-separated string of parameter names
        **cases: Named test cases where key is the test ID and value is
                either a single argument or tuple of arguments

    Returns:
        pytest.mark.parametrize decorator with 'key' as first parameter

    Example:
        @params("code expected", add=("1 + 2", 3))
        def test_arithmetic(key, code, expected):
            assert rbtest.value(code) == expected
    """
    keys = list(cases)
    rows = []
    for k, v in cases.items():
        if isinstance(v, tuple):
            rows.append((k, *v))
        else:
            rows.append((k, v))

    columns = names.replace(",", " ").split()
    columns.insert(0, "key")
    return pytest.mark.parametrize(columns, rows, ids=keys)


def interp(code=None, **options):
    """Create an interpreter, optionally loading a program into it."""
    session = minirb.Interp(**options)
    if code is not None:
        session.run(textwrap.dedent(code))
    return session


def run(code, **options):
    """Run a program in a fresh interpreter and return the raw runtime value."""
    session = minirb.Interp(**options)
    return session.run(textwrap.dedent(code))


def value(code, **options):
    """Run a program in a fresh interpreter and return it as a Python value."""
    return minirb.run(textwrap.dedent(code), **options)


def tree(sexp):
    """Build a syntax tree from nested tuples."""
    return minirb.from_sexp(sexp)
