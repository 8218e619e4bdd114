from inputs_client.models.schemas import (
    Concept,
    ConceptPredicate,
    Crop,
    ImagePredicate,
    Record,
    RecordCollection,
    SearchPredicate,
)

__all__ = [
    "Concept",
    "ConceptPredicate",
    "Crop",
    "ImagePredicate",
    "Record",
    "RecordCollection",
    "SearchPredicate",
]
