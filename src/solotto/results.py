"""Tagged results returned across the builder and submit boundaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from solders.transaction import VersionedTransaction

OK = "ok"
ERROR = "error"

BuiltTransaction = Union[VersionedTransaction, bytes, str]


@dataclass(frozen=True)
class TxResult:
    status: str
    message: str
    transaction: Optional[BuiltTransaction] = None

    @property
    def ok(self) -> bool:
        return self.status == OK

    @classmethod
    def success(cls, transaction: BuiltTransaction) -> "TxResult":
        return cls(status=OK, message="success", transaction=transaction)

    @classmethod
    def error(cls, message: str) -> "TxResult":
        return cls(status=ERROR, message=message)


@dataclass(frozen=True)
class SimulationError:
    """The dry run rejected the instructions; resending them unchanged will fail too."""

    message: str
    details: Any = None
    logs: List[str] = field(default_factory=list)
    status: str = ERROR

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class SendError:
    message: str
    status: str = ERROR

    @property
    def ok(self) -> bool:
        return False
