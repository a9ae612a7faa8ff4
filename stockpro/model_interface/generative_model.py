from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict


class GenerativeModel(ABC):
    """
    Contract for the external model.

    generate() sends one rendered prompt together with the output schema and
    returns the structured reply as a dict. Implementations raise
    ModelInvocationError, SchemaMismatchError or EmptyResponseError from
    stockpro.errors; callers must not assume repeatable output across calls.
    """

    @abstractmethod
    def generate(self, prompt: str, output_schema: Dict[str, Any]) -> Dict[str, Any]:
        ...
