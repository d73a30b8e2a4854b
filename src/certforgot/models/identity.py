"""
Identity of the certificate-requesting principal.

The Identity is the one durable record every state backend persists:
the mailbox used to register with the certificate authority and the
signing key (a JSON Web Key) that authenticates requests.
"""

from dataclasses import dataclass

import josepy as jose


@dataclass(frozen=True)
class Mailbox:
    """
    Parsed mail address with optional display name.

    Attributes:
        address: The addr-spec (user@domain)
        name: Display name, empty when absent
    """

    address: str
    name: str = ""

    def __str__(self) -> str:
        """Canonical mailbox form: user@domain or "Display Name" <user@domain>."""
        if not self.name:
            return self.address
        escaped = self.name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}" <{self.address}>'


@dataclass(frozen=True)
class Identity:
    """
    Durable identity record.

    Attributes:
        email: Registration mailbox
        signing_key: Account key in JSON Web Key form
    """

    email: Mailbox
    signing_key: jose.JWK
