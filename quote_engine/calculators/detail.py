"""
Expert-view detail breakdown.

Distributes each category's sell price over the named proposal lines in
RuleSet.detail_allocation (e.g. structural -> 65% materials, 35% labor).
Values are unrounded here; the assembler rounds each line on its own.
"""

from ..rules import RuleSet


def build_detail_breakdown(sell: dict, rules: RuleSet) -> dict:
    detail = {}
    for label, category, share in rules.detail_allocation:
        detail[label] = detail.get(label, 0.0) + sell.get(category, 0.0) * share
    return detail
