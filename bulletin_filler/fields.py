"""
Field capability the filling engine works against.

A document exposes one lookup, ``field(name)``, that returns a typed
handle (text, choice or mark) or None when the template has no such field.
The PDF adapter in ``pdf_form`` implements these; tests use in-memory ones.
"""

from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable


class FieldRef(ABC):
    kind = ""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r}>"


class TextFieldRef(FieldRef):
    kind = "text"

    @abstractmethod
    def set_text(self, text: str) -> None: ...

    @abstractmethod
    def get_text(self) -> Optional[str]: ...

    @abstractmethod
    def get_max_length(self) -> int:
        """Maximum number of characters, 0 when unbounded."""


class ChoiceFieldRef(FieldRef):
    kind = "choice"

    @abstractmethod
    def get_options(self) -> list[str]: ...

    @abstractmethod
    def select(self, option: str) -> None:
        """Select ``option``, which must be one of ``get_options()`` verbatim."""

    @abstractmethod
    def get_selected(self) -> Optional[str]: ...


class MarkFieldRef(FieldRef):
    kind = "mark"

    @abstractmethod
    def check(self) -> None: ...

    @abstractmethod
    def uncheck(self) -> None: ...

    @abstractmethod
    def is_checked(self) -> bool: ...


@runtime_checkable
class FormDocument(Protocol):
    def field(self, name: str) -> Optional[FieldRef]: ...

    def field_names(self) -> list[str]: ...
