"""
Insertion provenance.

For each fact a rule inserted, records which rule match justified it. A fact
can be inserted by several rules, or by several matches of one rule, so the
index is an append-only multimap: merging concatenates, nothing is ever
overwritten. Facts that no rule inserted (asserted directly by the caller)
have no entry at all.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..core.session import Session
from ..core.types import Explanation, Justification, Production, hashable_key
from .translate import TokenTranslator

logger = logging.getLogger(__name__)


class JustificationMultimap:
    """
    Ordered fact -> [Justification] multimap with concatenating merge.

    Facts are keyed by `hashable_key`, so plain lists or objects inserted by
    a rule index as well as Facts do. The first value seen for a key is kept
    for display and export.
    """

    def __init__(self):
        self._entries: Dict[Any, List[Justification]] = defaultdict(list)
        self._values: Dict[Any, Any] = {}

    def add(self, fact: Any, justification: Justification) -> None:
        key = hashable_key(fact)
        self._values.setdefault(key, fact)
        self._entries[key].append(justification)

    def merge(self, other: "JustificationMultimap") -> "JustificationMultimap":
        merged = JustificationMultimap()
        for source in (self, other):
            for key, justifications in source._entries.items():
                merged._values.setdefault(key, source._values[key])
                merged._entries[key].extend(justifications)
        return merged

    def get(self, fact: Any) -> List[Justification]:
        return list(self._entries.get(hashable_key(fact), []))

    def __contains__(self, fact: Any) -> bool:
        return hashable_key(fact) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def as_dict(self) -> Dict[Any, List[Justification]]:
        """Justifications keyed by `hashable_key(fact)`."""
        return {key: list(js) for key, js in self._entries.items()}

    def fact_values(self) -> Dict[Any, Any]:
        """Map each key of `as_dict()` back to the fact as inserted."""
        return dict(self._values)


class ProvenanceIndex:
    """Walks rule insertion records in a session snapshot."""

    def __init__(self, session: Session, translator: Optional[TokenTranslator] = None):
        self.session = session
        self.translator = translator or TokenTranslator(session)

    def iter_insertions(self) -> Iterator[Tuple[Production, Explanation, Any]]:
        """
        Yield (rule, explanation, fact) for every individually inserted fact.

        Order follows the rule base's production order, then the order in
        which working memory recorded insertions.
        """
        memory = self.session.memory
        for rule, node_id in self.session.rulebase.productions.items():
            for token, groups in memory.get_insertions(node_id):
                explanation = self.translator.translate_token(token)
                for group in groups:
                    for fact in group:
                        yield rule, explanation, fact

    def build_multimap(self) -> JustificationMultimap:
        index = JustificationMultimap()
        for rule, explanation, fact in self.iter_insertions():
            index.add(fact, Justification(rule=rule, explanation=explanation))
        logger.debug(f"Indexed justifications for {len(index)} inserted fact(s)")
        return index

    def build(self) -> Dict[Any, List[Justification]]:
        return self.build_multimap().as_dict()
