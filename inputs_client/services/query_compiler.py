"""
Query Compiler
Turns AND / OR predicate lists into the service's search request body.
"""
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog

from inputs_client.models.schemas import ConceptPredicate, ImagePredicate, SearchPredicate
from inputs_client.services.formatting import format_concept_term, format_image_term

logger = structlog.get_logger()

PredicateLike = Union[SearchPredicate, Dict[str, Any], str]
PredicateArg = Union[PredicateLike, Sequence[PredicateLike], None]


def parse_predicate(value: PredicateLike) -> SearchPredicate:
    """
    Classify a raw predicate once, by shape.

    A dict with a ``name`` is a concept term. Anything else is an image
    term, including dicts with neither name nor media (the service rejects
    those). A bare string is an image URL.
    """
    if isinstance(value, (ConceptPredicate, ImagePredicate)):
        return value
    if isinstance(value, str):
        return ImagePredicate(url=value)
    if isinstance(value, dict) and value.get("name"):
        return ConceptPredicate.model_validate(value)
    return ImagePredicate.model_validate(value)


def _as_list(value: PredicateArg) -> List[PredicateLike]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class QueryCompiler:
    """Compiles search predicates into a request body."""

    def compile_term(self, predicate: PredicateLike) -> Dict[str, Any]:
        predicate = parse_predicate(predicate)
        if isinstance(predicate, ConceptPredicate):
            return format_concept_term(predicate)
        return format_image_term(predicate)

    def compile(
        self,
        ands: PredicateArg = None,
        ors: PredicateArg = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Build the search body.

        Args:
            ands: Predicates that must all match
            ors: Predicates of which any must match; added as a single
                ``{"ors": [...]}`` term of the and-list
            page: Page number, passed through unchecked
            per_page: Page size, passed through unchecked

        Returns:
            ``{"query": {"ands": [...]}, "pagination": {...}}``
        """
        and_terms = [self.compile_term(p) for p in _as_list(ands)]
        or_terms = [self.compile_term(p) for p in _as_list(ors)]

        if or_terms:
            and_terms.append({"ors": or_terms})

        pagination = {}
        if page is not None:
            pagination["page"] = page
        if per_page is not None:
            pagination["per_page"] = per_page

        logger.debug("Compiled search query", ands=len(and_terms), ors=len(or_terms))

        return {
            "query": {"ands": and_terms},
            "pagination": pagination,
        }
