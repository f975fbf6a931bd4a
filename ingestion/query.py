"""
Compile match rules into a search store query
"""

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union
from pydantic import ValidationError
from schemas.search import MatchRule
from core.exceptions import ConfigurationError


def load_match_rules(raw_rules: Iterable[Mapping[str, str]]) -> List[MatchRule]:
    """Turn configured dicts into validated rules."""
    rules = []
    for position, raw in enumerate(raw_rules):
        try:
            rules.append(MatchRule(terms=dict(raw)))
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid match rule",
                context={"rule_index": position, "rule": dict(raw)},
                original_exception=e
            )
    return rules


def build_match_predicate(rules: Sequence[Union[MatchRule, Mapping[str, str]]]) -> Dict[str, Any]:
    """
    Build a bool query that matches a document iff it satisfies every
    condition of at least one rule.

    Each rule becomes ``bool.must`` of ``match_phrase`` clauses; the rules
    are OR-ed through ``bool.should`` with ``minimum_should_match: 1``.
    """
    if not rules:
        raise ConfigurationError("At least one match rule is required")

    should = []
    for rule in rules:
        if not isinstance(rule, MatchRule):
            rule = MatchRule(terms=dict(rule))
        should.append({
            "bool": {
                "must": [
                    {"match_phrase": {field: value}}
                    for field, value in rule.terms.items()
                ]
            }
        })

    return {
        "bool": {
            "should": should,
            "minimum_should_match": 1,
        }
    }
