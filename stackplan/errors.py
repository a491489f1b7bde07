"""
Exception hierarchy for stackplan.

Every error carries the offending logical name(s) as attributes so callers
can point at the broken declaration without parsing the message.
"""
from typing import List, Optional


class StackplanError(Exception):
    """Base class for all stackplan errors."""


class CompileError(StackplanError):
    """The declared resource graph cannot be turned into a plan."""


class DuplicateNameError(CompileError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Logical name '{name}' is declared more than once")


class UnresolvedReferenceError(CompileError):
    def __init__(self, target: str, referrer: Optional[str] = None):
        self.target = target
        self.referrer = referrer
        msg = f"Reference to undeclared resource '{target}'"
        if referrer:
            msg += f" (from '{referrer}')"
        super().__init__(msg)


class CyclicDependencyError(CompileError):
    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Cyclic dependency: {path}")


class DeclarationError(StackplanError):
    """A declaration file is malformed or uses an unknown type or property."""

    def __init__(self, message: str, source: str = "", resource: str = ""):
        self.message = message
        self.source = source
        self.resource = resource
        prefix = ""
        if source:
            prefix += f"{source}: "
        if resource:
            prefix += f"{resource}: "
        super().__init__(prefix + message)


class ConfigError(StackplanError):
    """The site configuration is missing a setting or holds an invalid value."""
