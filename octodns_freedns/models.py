#
#
#

"""Value types for FreeDNS domains and records.

Everything here is rebuilt from scratch on every page fetch; nothing is
cached between operations.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

TRUNCATION_MARKERS = ('...', '…')


class DomainMap:
    """Invertible mapping between domain names and FreeDNS domain ids.

    ``by_name`` and ``by_id`` are read-only views over the same pairs, so a
    name always maps to exactly one id and that id maps back to the name.
    """

    def __init__(self, pairs: Optional[Mapping[str, str]] = None):
        self._by_name: Dict[str, str] = {}
        self._by_id: Dict[str, str] = {}
        for name, domain_id in (pairs or {}).items():
            self.add(name, domain_id)

    def add(self, name: str, domain_id: str) -> None:
        old_id = self._by_name.pop(name, None)
        if old_id is not None:
            self._by_id.pop(old_id, None)
        old_name = self._by_id.pop(domain_id, None)
        if old_name is not None:
            self._by_name.pop(old_name, None)
        self._by_name[name] = domain_id
        self._by_id[domain_id] = name

    @property
    def by_name(self) -> Mapping[str, str]:
        return MappingProxyType(self._by_name)

    @property
    def by_id(self) -> Mapping[str, str]:
        return MappingProxyType(self._by_id)

    def id_for(self, name: str) -> Optional[str]:
        return self._by_name.get(name)

    def name_for(self, domain_id: str) -> Optional[str]:
        return self._by_id.get(domain_id)

    def __contains__(self, name) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DomainMap):
            return NotImplemented
        return self._by_name == other._by_name

    def __repr__(self) -> str:
        return f'DomainMap({self._by_name!r})'


@dataclass(frozen=True)
class Record:
    """A row of a domain's record listing.

    ``name`` is the fully qualified name, host plus domain.
    """

    id: str
    name: str
    type: str
    value: str

    @property
    def truncated(self) -> bool:
        return self.value.endswith(TRUNCATION_MARKERS)


@dataclass(frozen=True)
class RecordDetails:
    """The full record as shown on its edit page."""

    id: str
    fqdn: str
    type: str
    host: str
    domain_id: str
    domain: str
    value: str
    ttl: str = ''
    wildcard: str = ''

    def summary(self) -> Record:
        return Record(
            id=self.id, name=self.fqdn, type=self.type, value=self.value
        )
