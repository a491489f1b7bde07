import hashlib
import json
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from stackplan.models.declaration import ResourceDeclaration, to_plain


@dataclass(frozen=True)
class PlanStep:
    position: int                       # 1-based
    declaration: ResourceDeclaration
    depends_on: Tuple[str, ...]

    @property
    def name(self) -> str:
        return self.declaration.name

    def to_dict(self) -> dict:
        d = self.declaration
        return {
            "position": self.position,
            "name": d.name,
            "resource_type": d.resource_type,
            "removal_policy": d.removal_policy.value if d.removal_policy else None,
            "depends_on": list(self.depends_on),
            "properties": {
                k: to_plain(v) for k, v in d.properties.items() if v is not None
            },
        }


class ProvisioningPlan:
    """
    Declarations in an order the provisioning backend can apply one by one:
    every resource comes after everything it references.
    """

    def __init__(self, steps: List[PlanStep], target: Optional[Dict[str, Optional[str]]] = None):
        # deployment environment, e.g. {"account": ..., "region": ...}
        self.target: Optional[Dict[str, Optional[str]]] = dict(target) if target else None
        self._steps: Tuple[PlanStep, ...] = tuple(steps)
        self._index: Dict[str, int] = {s.name: i for i, s in enumerate(self._steps)}

    def __iter__(self) -> Iterator[ResourceDeclaration]:
        return (s.declaration for s in self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProvisioningPlan):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"ProvisioningPlan({self.names!r})"

    @property
    def steps(self) -> Tuple[PlanStep, ...]:
        return self._steps

    @property
    def names(self) -> List[str]:
        return [s.name for s in self._steps]

    def index(self, name: str) -> int:
        """0-based position of a logical name; KeyError if absent."""
        return self._index[name]

    def dependencies_of(self, name: str) -> Tuple[str, ...]:
        return self._steps[self._index[name]].depends_on

    def to_dict(self) -> dict:
        d: dict = {"steps": [s.to_dict() for s in self._steps]}
        if self.target:
            d["target"] = dict(self.target)
        return d

    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form; equal plans share a fingerprint."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
