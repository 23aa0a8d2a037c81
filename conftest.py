"""Shared pytest fixtures and configuration for all tests."""

import pytest

from csharp_lexer import tokenize
from fsharp_translator import translate


def wrap_class(members: str, name: str = "Test") -> str:
    """C# source with the given members inside one class"""
    return f"namespace App {{ public class {name} {{ {members} }} }}"


def wrap_method(statements: str) -> str:
    """C# source with the given statements inside one void method"""
    return wrap_class(f"public void Run() {{ {statements} }}")


def transpile(source: str) -> str:
    return translate(tokenize(source))


@pytest.fixture
def method_body():
    """Translate statements inside a void method and return only the body lines."""
    def run(statements: str) -> list:
        lines = transpile(wrap_method(statements)).splitlines()
        head = lines.index("    member this.Run() =")
        return lines[head + 1:]
    return run


@pytest.fixture
def class_members():
    """Translate class members and return the lines after the type header."""
    def run(members: str) -> list:
        lines = transpile(wrap_class(members)).splitlines()
        head = lines.index("type Test =")
        return lines[head + 1:]
    return run


@pytest.fixture
def sample_source():
    """The program used by the --test demo."""
    from csharp_transpiler import SAMPLE_SOURCE
    return SAMPLE_SOURCE
