"""
Data models for inputs, concepts and search predicates.
"""
from collections.abc import Sequence
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Scope = Literal["input", "output"]


def _coerce_crop(value: Any) -> Any:
    """Accept [top, left, bottom, right] as well as a mapping."""
    if isinstance(value, (list, tuple)):
        if len(value) != 4:
            raise ValueError("crop needs exactly 4 values: top, left, bottom, right")
        top, left, bottom, right = value
        return {"top": top, "left": left, "bottom": bottom, "right": right}
    return value


class Crop(BaseModel):
    """Crop rectangle, each side in percent of the image."""
    model_config = ConfigDict(frozen=True)

    top: float = Field(ge=0, le=100)
    left: float = Field(ge=0, le=100)
    bottom: float = Field(ge=0, le=100)
    right: float = Field(ge=0, le=100)

    def as_list(self) -> List[float]:
        return [self.top, self.left, self.bottom, self.right]


class Concept(BaseModel):
    """A concept annotation on an input."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    value: bool = True
    name: Optional[str] = None  # filled in by the service on responses

    @model_validator(mode="before")
    @classmethod
    def _from_id_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"id": data}
        return data

    @field_validator("value", mode="before")
    @classmethod
    def _numeric_value(cls, value: Any) -> Any:
        # The service reports annotation values as 1 / 0 (or probabilities)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value > 0
        return value


class Record(BaseModel):
    """
    One input known to the recognition service.

    Media is either a public ``url`` or inline ``base64`` bytes, never both.
    ``score`` is only set on records that come back from a search.
    Unknown fields returned by the service (timestamps, status, ...) are kept.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    id: Optional[str] = None
    url: Optional[str] = None
    base64: Optional[str] = None
    crop: Optional[Crop] = None
    concepts: Tuple[Concept, ...] = ()
    metadata: Optional[Dict[str, Any]] = None
    score: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_envelopes(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"url": data}
        if not isinstance(data, dict):
            return data

        data = dict(data)
        # {"data": {"image": ..., "concepts": ..., "metadata": ...}}
        payload = data.pop("data", None)
        if isinstance(payload, dict):
            for key, value in payload.items():
                data.setdefault(key, value)
        # {"image": {"url": ..., "base64": ..., "crop": ...}}
        image = data.pop("image", None)
        if isinstance(image, dict):
            for key in ("url", "base64", "crop"):
                if image.get(key) is not None:
                    data.setdefault(key, image[key])
        return data

    @field_validator("crop", mode="before")
    @classmethod
    def _crop_from_list(cls, value: Any) -> Any:
        return _coerce_crop(value)

    @field_validator("concepts", mode="before")
    @classmethod
    def _no_concepts(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _single_media_source(self) -> "Record":
        if self.url is not None and self.base64 is not None:
            raise ValueError("a record takes either url or base64, not both")
        return self

    @classmethod
    def from_raw(cls, raw: Union[Dict[str, Any], str, "Record"]) -> "Record":
        """
        Build a record from a raw API item.

        Search hits look like ``{"score": 0.87, "input": {...}}``; the envelope
        is dropped and the score is copied onto the record.
        """
        if isinstance(raw, Record):
            return raw
        if isinstance(raw, dict) and isinstance(raw.get("input"), dict):
            score = raw.get("score")
            raw = dict(raw["input"])
            if score is not None:
                raw["score"] = score
        return cls.model_validate(raw)


class RecordCollection(Sequence):
    """
    Ordered, immutable view over records returned by the service.

    Operations that change the set of records return a new collection.
    """

    __slots__ = ("_records", "_raw")

    def __init__(self, records: Iterable[Record] = (), raw: Iterable[Any] = ()):
        self._records: Tuple[Record, ...] = tuple(records)
        self._raw: Tuple[Any, ...] = tuple(raw)

    @classmethod
    def from_raw(cls, raw_items: Optional[Iterable[Any]]) -> "RecordCollection":
        raw_items = list(raw_items or [])
        return cls((Record.from_raw(item) for item in raw_items), raw_items)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RecordCollection(self._records[index], self._raw[index])
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecordCollection):
            return self._records == other._records
        return NotImplemented

    def __repr__(self) -> str:
        return f"RecordCollection({len(self)} records)"

    @property
    def raw(self) -> Tuple[Any, ...]:
        """Raw API items the collection was built from."""
        return self._raw

    @property
    def ids(self) -> List[Optional[str]]:
        return [record.id for record in self._records]

    def concat(self, other: "RecordCollection") -> "RecordCollection":
        """Return a new collection with ``other``'s records appended."""
        return RecordCollection(self._records + other._records, self._raw + other._raw)


class ConceptPredicate(BaseModel):
    """Search term matching a concept name."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: Literal["concept"] = "concept"
    name: str
    value: bool = True
    type: Scope = "output"


class ImagePredicate(BaseModel):
    """
    Search term matching an image (visual similarity or input image).

    No media is required here: a term without url or base64 is sent as is
    and rejected by the service.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: Literal["image"] = "image"
    url: Optional[str] = None
    base64: Optional[str] = None
    crop: Optional[Crop] = None
    type: Scope = "output"

    @field_validator("crop", mode="before")
    @classmethod
    def _crop_from_list(cls, value: Any) -> Any:
        return _coerce_crop(value)


SearchPredicate = Union[ConceptPredicate, ImagePredicate]
