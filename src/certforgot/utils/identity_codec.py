"""
Identity codec.

Converts the Identity record between its in-memory form and the native
encodings used by the state backends:

- JSON Web Key JSON (vault key import/export, SQL column storage)
- base64-wrapped JWK JSON (embedding in a structured text document)
- mailbox text (SQL column, vault secret, state document)
- the YAML state document {userEmail, userPrivateKey}

The codec is stateless. Each backend constructs and owns its own
instance rather than sharing a process-wide one.
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

import josepy as jose
import yaml
from email_validator import EmailNotValidError, validate_email

from certforgot.errors import IdentityDecodeError
from certforgot.models.identity import Identity, Mailbox

EMAIL_FIELD = "userEmail"
KEY_FIELD = "userPrivateKey"


class IdentityCodec:
    """Encode and decode Identity records and their parts."""

    # ------------------------------------------------------------------
    # Signing key
    # ------------------------------------------------------------------

    def encode_key_json(self, key: jose.JWK) -> str:
        """
        Serialize a JWK to compact JSON with sorted members.

        Args:
            key: Key to serialize

        Returns:
            JSON text, e.g. {"k":"dGVzdA","kty":"oct"}
        """
        return key.json_dumps(sort_keys=True, separators=(",", ":"))

    def decode_key_json(self, data: str | bytes) -> jose.JWK:
        """
        Parse a JWK from its JSON form.

        Args:
            data: JSON text or UTF-8 bytes

        Returns:
            Parsed key

        Raises:
            IdentityDecodeError: If the JSON is malformed or not a known key type
        """
        if isinstance(data, bytes | bytearray | memoryview):
            try:
                data = bytes(data).decode("utf-8")
            except UnicodeDecodeError as e:
                raise IdentityDecodeError(f"signing key is not UTF-8 text: {e}") from e
        if not isinstance(data, str):
            raise IdentityDecodeError(
                f"signing key must be JSON text, got {type(data).__name__}"
            )
        try:
            return jose.JWK.json_loads(data)
        except (ValueError, TypeError, KeyError, jose.Error) as e:
            raise IdentityDecodeError(f"invalid signing key JSON: {e}") from e

    def encode_key_text(self, key: jose.JWK) -> str:
        """Serialize a JWK as standard base64 of its JSON form."""
        return base64.b64encode(self.encode_key_json(key).encode("utf-8")).decode(
            "ascii"
        )

    def decode_key_text(self, text: str) -> jose.JWK:
        """
        Parse a base64-wrapped JWK.

        Raises:
            IdentityDecodeError: If the text is not base64 or does not wrap a JWK
        """
        if not isinstance(text, str):
            raise IdentityDecodeError(
                f"signing key text must be a string, got {type(text).__name__}"
            )
        try:
            key_json = base64.b64decode(text.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise IdentityDecodeError(f"signing key is not valid base64: {e}") from e
        return self.decode_key_json(key_json)

    # ------------------------------------------------------------------
    # Mailbox
    # ------------------------------------------------------------------

    def encode_mailbox(self, mailbox: Mailbox) -> str:
        """Canonical text form of a mailbox."""
        return str(mailbox)

    def decode_mailbox(self, text: str) -> Mailbox:
        """
        Parse a mailbox.

        Accepts user@domain, <user@domain>, Name <user@domain> and
        "Name" <user@domain>. The address part is checked for syntax
        only; no DNS lookups are made.

        Raises:
            IdentityDecodeError: If the text is not a structurally valid mailbox
        """
        if not isinstance(text, str) or not text.strip():
            raise IdentityDecodeError(
                f"mailbox must be a non-empty string, got {text!r}"
            )

        try:
            result = validate_email(
                text.strip(), check_deliverability=False, allow_display_name=True
            )
        except EmailNotValidError as e:
            raise IdentityDecodeError(f"'{text}' is not a valid mailbox: {e}") from e

        return Mailbox(address=result.normalized, name=result.display_name or "")

    # ------------------------------------------------------------------
    # State document
    # ------------------------------------------------------------------

    def to_document(self, identity: Identity) -> dict[str, str]:
        """Structured state document with the key in base64 text form."""
        return {
            EMAIL_FIELD: self.encode_mailbox(identity.email),
            KEY_FIELD: self.encode_key_text(identity.signing_key),
        }

    def from_document(self, document: Any) -> Identity:
        """
        Build an Identity from a state document.

        The key may be base64 text, raw JWK JSON text or an inline
        JWK object. Lower-case field names are accepted as well.

        Raises:
            IdentityDecodeError: If a field is missing or malformed
        """
        if not isinstance(document, Mapping):
            raise IdentityDecodeError(
                f"state document must be a mapping, got {type(document).__name__}"
            )

        email = _field(document, EMAIL_FIELD)
        key = _field(document, KEY_FIELD)

        if isinstance(key, Mapping):
            signing_key = self.decode_key_json(json.dumps(dict(key)))
        elif isinstance(key, str) and key.lstrip().startswith("{"):
            signing_key = self.decode_key_json(key)
        else:
            signing_key = self.decode_key_text(key)

        return Identity(email=self.decode_mailbox(email), signing_key=signing_key)

    def dump_yaml(self, identity: Identity) -> bytes:
        """Serialize an Identity as a YAML state document."""
        return yaml.safe_dump(
            self.to_document(identity), default_flow_style=False, sort_keys=False
        ).encode("utf-8")

    def load_yaml(self, data: bytes | str) -> Identity:
        """
        Parse a YAML state document.

        Raises:
            IdentityDecodeError: If the YAML or its fields are malformed
        """
        try:
            document = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise IdentityDecodeError(f"state document is not valid YAML: {e}") from e
        return self.from_document(document)


def _field(document: Mapping, name: str) -> Any:
    """Fetch a document field by exact or lower-case name."""
    for candidate in (name, name.lower()):
        if candidate in document:
            return document[candidate]
    raise IdentityDecodeError(f"state document is missing '{name}'")
