"""The rule registry every pipeline stage registers into."""

from fontspine.engine.rules import RuleRegistry

rules = RuleRegistry()

__all__ = ["rules"]
