from __future__ import annotations

import base64
import binascii
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from .bloom import FilterStats

ItemEncoding = Literal["utf-8", "base64"]


class ItemRequest(BaseModel):
    """
    Request body shared by /insert and /contains.
    The item is an opaque payload; `encoding` says how the JSON string maps to bytes.
    """
    item: str = Field(..., description="Item payload")
    encoding: ItemEncoding = Field(
        default="utf-8",
        description="'utf-8' for text, 'base64' for binary payloads",
    )

    _payload: bytes = PrivateAttr(default=b"")

    @model_validator(mode="after")
    def _decode_item(self) -> "ItemRequest":
        if self.encoding == "base64":
            try:
                self._payload = base64.b64decode(self.item.encode("ascii"), validate=True)
            except (binascii.Error, UnicodeEncodeError) as exc:
                raise ValueError("item is not valid base64") from exc
        else:
            try:
                self._payload = self.item.encode("utf-8")
            except UnicodeEncodeError as exc:
                # lone surrogates survive JSON decoding but have no UTF-8 form
                raise ValueError("item is not valid UTF-8 text") from exc
        return self

    @property
    def payload(self) -> bytes:
        return self._payload


class InsertRequest(ItemRequest):
    pass


class ContainsRequest(ItemRequest):
    pass


class InsertResponse(BaseModel):
    """Empty acknowledgement."""


class ContainsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contains_item: bool = Field(..., alias="containsItem")


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    n: int
    f: float
    m: int
    k: int
    size_bytes: int = Field(..., alias="sizeBytes")
    inserted: int
    fill_ratio: float = Field(..., alias="fillRatio")
    estimated_false_positive_rate: float = Field(..., alias="estimatedFalsePositiveRate")

    @classmethod
    def from_stats(cls, stats: FilterStats) -> "StatsResponse":
        return cls(
            n=stats.n,
            f=stats.f,
            m=stats.m,
            k=stats.k,
            size_bytes=stats.size_bytes,
            inserted=stats.inserted,
            fill_ratio=stats.fill_ratio,
            estimated_false_positive_rate=stats.estimated_false_positive_rate,
        )
