"""
Async client for the inputs collection of an image recognition API.
"""
from inputs_client.config import Settings, get_settings
from inputs_client.errors import (
    ConfigurationError,
    InputsError,
    PartialBatchFailure,
    RemoteRejection,
    TransportFailure,
)
from inputs_client.inputs import InputsClient, get_inputs_client
from inputs_client.log_config import configure_logging
from inputs_client.models import (
    Concept,
    ConceptPredicate,
    Crop,
    ImagePredicate,
    Record,
    RecordCollection,
)

__all__ = [
    "Concept",
    "ConceptPredicate",
    "ConfigurationError",
    "Crop",
    "ImagePredicate",
    "InputsClient",
    "InputsError",
    "PartialBatchFailure",
    "Record",
    "RecordCollection",
    "RemoteRejection",
    "Settings",
    "TransportFailure",
    "configure_logging",
    "get_inputs_client",
    "get_settings",
]
