"""dnspython adapter for the TXT resolver port."""

from __future__ import annotations

from collections.abc import Sequence

import dns.resolver

from supportdesk.services._shared.ports import TxtResolver


class DnsPythonTxtResolver(TxtResolver):
    """
    Resolve TXT records with :mod:`dns.resolver`.

    A missing name or a name without TXT records answers ``[]``; timeouts and
    server failures propagate as :class:`dns.exception.DNSException` so the
    worker can record them.

    :param timeout: Lifetime of one lookup in seconds, retries included.
    :param nameservers: Optional explicit resolvers; system config otherwise.
    """

    def __init__(self, *, timeout: float = 5.0, nameservers: Sequence[str] | None = None) -> None:
        self.timeout = timeout
        self.nameservers = list(nameservers or [])
        self._resolver: dns.resolver.Resolver | None = None

    @property
    def resolver(self) -> dns.resolver.Resolver:
        # Built lazily: reading the system config fails on hosts without one.
        if self._resolver is None:
            resolver = dns.resolver.Resolver(configure=not self.nameservers)
            if self.nameservers:
                resolver.nameservers = self.nameservers
            self._resolver = resolver
        return self._resolver

    def lookup_txt(self, host: str) -> list[str]:
        try:
            answer = self.resolver.resolve(host, "TXT", lifetime=self.timeout)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        # A TXT rdata may be split into several character-strings.
        return [
            b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer
        ]
