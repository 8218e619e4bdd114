"""
Formatting Service
Renders records and search predicates into request payload fragments.
All functions are pure: the same input always gives the same output.
"""
from typing import Any, Dict, Optional, Union

from inputs_client.constants import SCOPE_INPUT
from inputs_client.models.schemas import ConceptPredicate, Crop, ImagePredicate, Record

RecordLike = Union[Record, Dict[str, Any], str]


def as_record(record: RecordLike) -> Record:
    """Coerce a Record, a plain dict or an image URL into a Record."""
    if isinstance(record, Record):
        return record
    return Record.model_validate(record)


def _format_image(url: Optional[str], base64: Optional[str], crop: Optional[Crop]) -> Dict[str, Any]:
    image: Dict[str, Any] = {}
    if url is not None:
        image["url"] = url
    if base64 is not None:
        image["base64"] = base64
    if crop is not None:
        image["crop"] = crop.as_list()
    return image


def format_record(record: RecordLike, include_media: bool = True) -> Dict[str, Any]:
    """
    Render a record for the inputs endpoints.

    Args:
        record: Record (or dict / URL string) to render
        include_media: Send the image reference and crop. Creation needs it;
            bulk mutations send only id, concepts and metadata.

    Returns:
        JSON-ready dict without empty keys
    """
    record = as_record(record)
    formatted: Dict[str, Any] = {}

    if record.id is not None:
        formatted["id"] = record.id

    if include_media:
        image = _format_image(record.url, record.base64, record.crop)
        if image:
            formatted["image"] = image

    if record.concepts:
        formatted["concepts"] = [
            {"id": concept.id, "value": concept.value}
            for concept in record.concepts
        ]

    if record.metadata:
        formatted["metadata"] = dict(record.metadata)

    return formatted


def format_concept_term(predicate: ConceptPredicate) -> Dict[str, Any]:
    """Render a concept predicate as one query term."""
    data = {"data": {"concepts": [{"name": predicate.name, "value": predicate.value}]}}
    return {predicate.type: data}


def format_image_term(predicate: ImagePredicate) -> Dict[str, Any]:
    """Render an image predicate as one query term."""
    data = {"data": {"image": _format_image(predicate.url, predicate.base64, predicate.crop)}}
    if predicate.type == SCOPE_INPUT:
        return {"input": data}
    # Output search matches visually similar inputs
    return {"output": {"input": data}}
