"""Implementation of CANC, an online classifier based on nominal concepts.

Rules are derived from formal concepts anchored on single (attribute, value)
pairs and are updated incrementally as labeled records stream in. Records no
rule matches trigger a rebuild from the highest-weighted records.

Limitations / Assumptions
=====

- nominal attributes only, numerical features have to be discretized
  beforehand
- no missing values handling beyond treating them as a value of their own
- concepts are only generated from single (attribute, value) anchors, not
  arbitrary attribute subsets
- concepts and rules are never removed, the rule list only grows
- classification only, no regression
- single-threaded, one record is processed completely before the next one
"""

__all__ = ['abstract', 'closure', 'common', 'concepts', 'context', 'extra',
           'online', 'resampling', 'rules', 'tests', 'util']
