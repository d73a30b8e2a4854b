"""
Certificate configuration file schema.

The YAML configuration file declares the ACME account, the identity
state backend and, per managed certificate, where the certificate is
read from and where it is installed. Keys are camelCase on disk:

    acme:
      server: https://acme-v02.api.letsencrypt.org/directory
      email: admin@example.com
    state:
      azureKeyVault:
        url: https://myvault.vault.azure.net
    globalPolicy:
      renewBefore: 720h
    validators:
      - name: web
        http01: 80
    certs:
      - metadata:
          name: www
          domains: [www.example.com]
        source:
          type: https
          location: https://www.example.com
        validator: web
        installer:
          type: local-pem
          location: /etc/ssl/www
"""

import re
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from certforgot.config import get_settings
from certforgot.errors import ConfigValidationError, IdentityDecodeError
from certforgot.models.file_type import FileType
from certforgot.utils.duration import format_duration, parse_duration
from certforgot.utils.identity_codec import IdentityCodec

# RFC 1035 label, as accepted for Key Vault object names
_DNS_LABEL = re.compile(r"^[a-zA-Z]([-a-zA-Z0-9]*[a-zA-Z0-9])?$")


class ConfigModel(BaseModel):
    """Base for configuration models: camelCase aliases, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


def _dns_label(value: str) -> str:
    if len(value) > 63 or not _DNS_LABEL.match(value):
        raise ConfigValidationError(f"'{value}' is not a valid DNS label")
    return value


class SourceType(str, Enum):
    """Certificate source variants."""

    LOCAL_PEM = "local-pem"
    LOCAL_DER = "local-der"
    HTTPS = "https"
    AZURE_KEYVAULT = "azure-keyvault"


class InstallerType(str, Enum):
    """Certificate installer variants."""

    LOCAL_PEM = "local-pem"
    LOCAL_DER = "local-der"
    AZURE_KEYVAULT = "azure-keyvault"


def file_type_of(kind: SourceType | InstallerType) -> FileType:
    """File encoding of a local-* source or installer type."""
    return FileType.parse(kind.value.removeprefix("local-"))


class AcmeConfig(ConfigModel):
    """ACME account settings."""

    server: AnyHttpUrl
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        try:
            return str(IdentityCodec().decode_mailbox(value))
        except IdentityDecodeError as e:
            raise ConfigValidationError(e.message) from e


class LocalStateConfig(ConfigModel):
    """Identity state kept in a local directory."""

    directory: str = Field(min_length=1)


class SqlStateConfig(ConfigModel):
    """
    Identity state kept in a relational database.

    Attributes:
        driver: SQLAlchemy async dialect+driver, e.g. "postgresql+asyncpg"
        connection_string: Remainder of the database URL after "://"
            or a full URL
        schema_name: Optional schema holding the state table
    """

    driver: str = Field(min_length=1)
    connection_string: str = Field(min_length=1)
    schema_name: str | None = Field(default=None, alias="schema")

    @property
    def url(self) -> str:
        """Full database URL."""
        if "://" in self.connection_string:
            return self.connection_string
        return f"{self.driver}://{self.connection_string}"


class AzureBlobStateConfig(ConfigModel):
    """Identity state kept in an Azure Storage blob container."""

    url: AnyHttpUrl


class AzureKeyVaultStateConfig(ConfigModel):
    """
    Identity state kept as an Azure Key Vault secret (email) and key.

    Unset names fall back to the backend defaults.
    """

    url: AnyHttpUrl
    key_name: str | None = None
    email_secret_name: str | None = None

    @field_validator("key_name", "email_secret_name")
    @classmethod
    def validate_names(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _dns_label(value)


class StateConfig(ConfigModel):
    """Identity state backend; exactly one variant must be set."""

    local: LocalStateConfig | None = None
    sql: SqlStateConfig | None = None
    azure_blob: AzureBlobStateConfig | None = None
    azure_key_vault: AzureKeyVaultStateConfig | None = None

    @model_validator(mode="after")
    def exactly_one_backend(self) -> "StateConfig":
        configured = [
            name
            for name in ("local", "sql", "azure_blob", "azure_key_vault")
            if getattr(self, name) is not None
        ]
        if len(configured) != 1:
            raise ConfigValidationError(
                "exactly one state backend (local, sql, azureBlob, azureKeyVault) "
                f"must be configured, got {len(configured)}"
            )
        return self


class CertificatePolicy(ConfigModel):
    """Renewal policy."""

    renew_before: timedelta = timedelta(days=30)

    @field_validator("renew_before", mode="before")
    @classmethod
    def parse_renew_before(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("renew_before")
    @classmethod
    def positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ConfigValidationError("renewBefore must be a positive duration")
        return value

    @field_serializer("renew_before")
    def serialize_renew_before(self, value: timedelta) -> str:
        return format_duration(value)


class ValidatorConfig(ConfigModel):
    """ACME challenge validator settings."""

    name: str = Field(min_length=1)
    dns01: str | None = None
    http01: int | None = Field(default=None, ge=1, le=65535)


class CertificateMetadata(ConfigModel):
    """Certificate name and the domains it covers."""

    name: str = Field(min_length=1)
    domains: list[str] = Field(default_factory=list)


class SourceDescriptor(ConfigModel):
    """Where a certificate is read from."""

    type: SourceType
    location: str = Field(min_length=1)

    @model_validator(mode="after")
    def validate_location(self) -> "SourceDescriptor":
        if self.type in (SourceType.HTTPS, SourceType.AZURE_KEYVAULT):
            _require_https(self.location)
        return self


class InstallerDescriptor(ConfigModel):
    """Where a certificate is installed."""

    type: InstallerType
    location: str = Field(min_length=1)

    @model_validator(mode="after")
    def validate_location(self) -> "InstallerDescriptor":
        if self.type is InstallerType.AZURE_KEYVAULT:
            _require_https(self.location)
        return self


class CertificateConfig(ConfigModel):
    """One managed certificate."""

    metadata: CertificateMetadata
    source: SourceDescriptor
    validator: str | None = None
    installer: InstallerDescriptor
    policy: CertificatePolicy | None = None


class AppConfig(ConfigModel):
    """Root of the configuration file."""

    acme: AcmeConfig
    state: StateConfig
    global_policy: CertificatePolicy = Field(default_factory=CertificatePolicy)
    validators: list[ValidatorConfig] = Field(default_factory=list)
    certs: list[CertificateConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def known_validators(self) -> "AppConfig":
        names = {validator.name for validator in self.validators}
        for cert in self.certs:
            if cert.validator is not None and cert.validator not in names:
                raise ConfigValidationError(
                    f"certificate '{cert.metadata.name}' references unknown "
                    f"validator '{cert.validator}'"
                )
        return self

    def policy_for(self, cert: CertificateConfig) -> CertificatePolicy:
        """Effective renewal policy of a certificate."""
        return cert.policy or self.global_policy


def _require_https(location: str) -> None:
    try:
        url = AnyHttpUrl(location)
    except ValidationError as e:
        raise ConfigValidationError(f"'{location}' is not a valid URL") from e
    if url.scheme != "https":
        raise ConfigValidationError(f"'{location}' must use the https scheme")


def load_config(path: str | Path | None = None) -> AppConfig:
    """
    Load and validate the YAML configuration file.

    Args:
        path: Path to the configuration file (defaults to the
            config_path setting)

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If the file cannot be read, is not valid
            YAML or fails validation
    """
    path = Path(path if path is not None else get_settings().config_path)
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigValidationError(
            f"cannot read configuration: {e}", operation="load", resource=str(path)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigValidationError(
            f"configuration is not valid YAML: {e}",
            operation="load",
            resource=str(path),
        ) from e

    try:
        return AppConfig.model_validate(document or {})
    except ValidationError as e:
        raise ConfigValidationError(
            f"invalid configuration: {e}", operation="load", resource=str(path)
        ) from e
