from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Metadata:
    """What a provider knows about the running instance.

    ssh_keys is None when the provider does not supply keys at all. An empty
    tuple means it supplies keys and there are none; that still clears
    previously installed keys.
    """

    attributes: Mapping[str, str] = field(default_factory=dict)
    ssh_keys: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        if self.ssh_keys is not None:
            object.__setattr__(self, "ssh_keys", tuple(self.ssh_keys))
