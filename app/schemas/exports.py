from __future__ import annotations

from typing import List, Union

from pydantic import BaseModel, ConfigDict


class ExportTableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    head: List[str]
    rows: List[List[Union[str, int, float]]]
