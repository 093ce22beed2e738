"""
Adapters Package

Boundary code turning raw query results into typed policy facts.
"""

from .fact_loader import (
    PolicyFacts,
    load_facts,
    group_from_record,
    assignment_from_record,
    rule_from_record,
)

__all__ = [
    "PolicyFacts",
    "load_facts",
    "group_from_record",
    "assignment_from_record",
    "rule_from_record",
]
