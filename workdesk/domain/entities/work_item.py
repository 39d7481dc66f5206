"""Work item and reference entities."""

from dataclasses import dataclass

from workdesk.domain.enums import ReferenceStatus, TableKind
from workdesk.domain.exceptions import ValidationException
from workdesk.domain.values import is_sys_id


@dataclass(frozen=True)
class WorkItemRef:
    """Pointer to one work item: table kind plus canonical identifier.

    Validation runs on construction, so a WorkItemRef is always resolved.
    """

    table: TableKind
    sys_id: str

    def __post_init__(self) -> None:
        if not is_sys_id(self.sys_id):
            raise ValidationException(
                "Record id must be a 32-character hex identifier", field="sys_id"
            )

    @classmethod
    def parse(cls, table: str, sys_id: str) -> "WorkItemRef":
        """Build from path parameters; unknown tables are a validation error."""
        name = str(table or "").strip()
        if name not in TableKind.values():
            raise ValidationException(
                f"Unsupported table {name!r}; expected one of {', '.join(TableKind.values())}",
                field="table",
            )
        return cls(TableKind(name), str(sys_id or "").strip().lower())


@dataclass(frozen=True)
class ResolvedReference:
    """Result of resolving a reference input to an identifier.

    PASSTHROUGH means nothing matched and value is the original input, which
    the upstream may reject; callers decide whether that is acceptable.
    """

    value: str
    status: ReferenceStatus

    @property
    def resolved(self) -> bool:
        return self.status is not ReferenceStatus.PASSTHROUGH
