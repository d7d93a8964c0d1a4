"""Base class for DSPy delegate modules.

Provides shared functionality for:
- Predict vs ChainOfThought selection
- Coercion of DSPy outputs into strict Pydantic models
"""

from abc import abstractmethod
from typing import Any, ClassVar, TypeVar, cast

import dspy
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def validate_dspy_result(result: Any, model_class: type[T]) -> T:
    """Validate and convert DSPy result to strict Pydantic model.

    Handles various return formats from DSPy:
    - Already correct model instance
    - Dict
    - DSPy Prediction object (extracts from _store or model_dump)

    Raises:
        TypeError: If the result cannot be converted
        pydantic.ValidationError: If the content does not match the model
    """
    if result is None:
        raise TypeError(f"Cannot validate None result against {model_class.__name__}")

    if isinstance(result, model_class):
        return result

    if isinstance(result, dict):
        return cast(T, model_class.model_validate(result))

    if hasattr(result, "_store") and isinstance(result._store, dict):
        return cast(T, model_class.model_validate(result._store))

    if hasattr(result, "model_dump") and callable(result.model_dump):
        return cast(T, model_class.model_validate(result.model_dump()))

    raise TypeError(f"Cannot convert result of type {type(result)} to {model_class.__name__}")


class DelegateModule(dspy.Module):
    """Base class for DSPy modules backing a delegate capability.

    Subclasses override `_create_extractor()` to define the signature and
    implement the async capability method on top of `self.extractor.acall()`.
    Errors are not swallowed here; the delegate gateway maps them to
    DelegateFailure.
    """

    default_use_cot: ClassVar[bool] = False

    def __init__(self, use_cot: bool | None = None):
        """Initialize module.

        Args:
            use_cot: If True, use ChainOfThought for reasoning.
                     If False, use simple Predict (faster, less tokens).
                     If None, use class default.
        """
        super().__init__()
        self.use_cot = use_cot if use_cot is not None else self.default_use_cot
        self.extractor = self._create_extractor(self.use_cot)

    @abstractmethod
    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        """Create the DSPy predictor/chain for this module."""
        ...

    @staticmethod
    def build(signature: type[dspy.Signature], use_cot: bool) -> dspy.Module:
        if use_cot:
            return dspy.ChainOfThought(signature)
        return dspy.Predict(signature)
