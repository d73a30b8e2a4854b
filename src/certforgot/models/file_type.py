"""On-disk encoding used by the local certificate source and installer."""

from enum import Enum

from certforgot.errors import ConfigValidationError


class FileType(str, Enum):
    """Certificate file encoding."""

    PEM = "pem"
    DER = "der"

    @property
    def extension(self) -> str:
        """Conventional file extension, without the dot."""
        return self.value

    @classmethod
    def parse(cls, name: str) -> "FileType":
        """
        Parse a file type name, case-insensitively.

        Args:
            name: "pem" or "der" in any case

        Returns:
            Matching FileType

        Raises:
            ConfigValidationError: If the name is not a known file type
        """
        try:
            return cls(name.strip().lower())
        except (ValueError, AttributeError) as e:
            raise ConfigValidationError(
                f"'{name}' is not a valid file type, expected one of "
                f"{', '.join(member.value for member in cls)}"
            ) from e
