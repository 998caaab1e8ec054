"""Base classes and markers that host applications build their types on.

The generator only inspects these statically; none of the methods below are
called while a document is generated, with the single exception of
:meth:`FormRequest.rules`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Self

__all__ = [
    "FormRequest",
    "JsonResource",
    "JsonResponse",
    "Nullable",
    "Required",
    "ResourceCollection",
]


@dataclass(frozen=True, slots=True)
class Required:
    """``Annotated`` marker forcing a declared field to be required."""


@dataclass(frozen=True, slots=True)
class Nullable:
    """``Annotated`` marker declaring a field optional and nullable."""


class FormRequest:
    """Request payload validated by a rule table.

    Subclasses override :meth:`rules` to return ``field -> rules`` where the
    rules are a pipe-delimited string or a list of tokens and rule objects.
    Dotted keys (``address.city``, ``items.*.sku``) describe nested input.

    Examples
    --------
    >>> class StoreUserRequest(FormRequest):
    ...     def rules(self):
    ...         return {"name": "required|string|max:255"}
    """

    def __init__(self, data: Mapping[str, object] | None = None) -> None:
        self.data = dict(data or {})

    def rules(self) -> Mapping[str, str | Sequence[object]]:
        return {}

    def validated(self) -> dict[str, object]:
        return {key: self.data[key] for key in self.rules() if key in self.data}


class JsonResource:
    """Presentation wrapper projecting a model to a response payload.

    Subclasses override :meth:`to_dict`. Attribute access falls through to the
    wrapped model, so ``self.email`` inside :meth:`to_dict` reads the model.
    """

    def __init__(self, resource: object) -> None:
        self.resource = resource

    def __getattr__(self, name: str) -> Any:
        if name == "resource":
            raise AttributeError(name)
        return getattr(self.resource, name)

    def to_dict(self) -> dict[str, object]:
        return dict(vars(self.resource)) if hasattr(self.resource, "__dict__") else {}

    @classmethod
    def collection(cls, resources: Iterable[object]) -> ResourceCollection[Self]:
        """Wrap every item of ``resources`` in ``cls``."""
        collection: ResourceCollection[Self] = ResourceCollection(cls(item) for item in resources)
        collection.item_class = cls
        return collection


class ResourceCollection[T]:
    """Collection of presentation items.

    A subclass may pin its item type with the ``collects`` class attribute;
    a bare ``ResourceCollection`` return type carries no item type at all.
    """

    collects: ClassVar[type | None] = None

    def __init__(self, items: Iterable[T] = ()) -> None:
        self.items: list[T] = list(items)
        self.item_class: type | None = self.collects

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_list(self) -> list[object]:
        return [item.to_dict() if isinstance(item, JsonResource) else item for item in self.items]


class JsonResponse:
    """Raw JSON response whose body shape is not statically known."""

    def __init__(
        self,
        data: object = None,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.data = data
        self.status = status
        self.headers = dict(headers or {})
