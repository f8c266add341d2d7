"""
Reference value type.

A Reference names the single source document (sale, return, or adjustment)
that a cost consumption is attributed to. It replaces three optional id
fields so that exactly one is always set.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .enums import ReferenceKind


@dataclass(frozen=True)
class Reference:
    """
    Tagged reference to a source document.

    Attributes:
        kind: Which document type the id belongs to
        id: Document identifier

    Example:
        >>> ref = Reference.sale(42)
        >>> ref.column_name
        'sale_id'
    """

    kind: ReferenceKind
    id: int

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ReferenceKind):
            object.__setattr__(self, "kind", ReferenceKind(self.kind))
        if self.id is None:
            raise ValueError("Reference id is required")

    @classmethod
    def sale(cls, sale_id: int) -> "Reference":
        return cls(ReferenceKind.SALE, sale_id)

    @classmethod
    def return_(cls, return_id: int) -> "Reference":
        return cls(ReferenceKind.RETURN, return_id)

    @classmethod
    def adjustment(cls, adjustment_id: int) -> "Reference":
        return cls(ReferenceKind.ADJUSTMENT, adjustment_id)

    @property
    def column_name(self) -> str:
        """Consumption column holding this reference's id."""
        return self.kind.column_name

    def as_columns(self) -> Dict[str, Any]:
        """
        Column values for a consumption record.

        Returns:
            Dict with all three reference columns, only this one non-null
        """
        columns = {kind.column_name: None for kind in ReferenceKind}
        columns[self.column_name] = self.id
        return columns

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"
