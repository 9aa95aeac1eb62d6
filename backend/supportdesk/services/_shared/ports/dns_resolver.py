from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol


class TxtResolver(Protocol):
    """Port for DNS TXT lookups.

    Implementations return the text of every TXT record at ``host`` (an empty
    list when the name or record type does not exist) and raise for anything
    else: timeouts, refused queries, unreachable servers.
    """

    def lookup_txt(self, host: str) -> list[str]: ...


class StaticTxtResolver(TxtResolver):
    """Resolver double answering from a fixed mapping.

    A mapping value that is an exception instance is raised instead of
    returned. ``calls`` records every queried host in order.
    """

    def __init__(self, records: Mapping[str, Sequence[str] | Exception] | None = None) -> None:
        self.records: dict[str, Sequence[str] | Exception] = dict(records or {})
        self.calls: list[str] = []

    def lookup_txt(self, host: str) -> list[str]:
        self.calls.append(host)
        answer = self.records.get(host, [])
        if isinstance(answer, Exception):
            raise answer
        return list(answer)
