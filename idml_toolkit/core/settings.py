from __future__ import annotations

"""Validated package behaviour settings.

:class:`PackageSettings` is the typed view over the ``package`` section of
the YAML configuration.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from idml_toolkit.config import ConfigManager
from idml_toolkit.core.exceptions import InvalidArgumentError

__all__ = [
    "PackageSettings",
    "MISSING_COMPONENT_POLICIES",
    "MARKUP_TAG_PRECEDENCES",
    "EXTRACT_LOCATIONS",
]

MISSING_COMPONENT_POLICIES = ("error", "skip")
MARKUP_TAG_PRECEDENCES = ("first", "last")
EXTRACT_LOCATIONS = ("temp", "sibling")


def _choice(data: Mapping[str, Any], key: str, allowed: tuple, default: str) -> str:
    value = str(data.get(key, default)).strip().lower()
    if value not in allowed:
        raise InvalidArgumentError(
            f"Invalid value for {key}: {data.get(key)!r} (expected one of {', '.join(allowed)})"
        )
    return value


@dataclass(frozen=True)
class PackageSettings:
    """Behaviour switches for loading, resolving and saving packages.

    Attributes
    ----------
    missing_component_policy
        ``error`` stops loading at the first referenced file that does not
        exist; ``skip`` logs it and continues.
    markup_tag_precedence
        ``first`` returns the first candidate's tag; ``last`` lets later
        candidates overwrite earlier ones.
    extract_location
        ``temp`` or ``sibling`` (hidden directory next to the archive).
    extract_prefix
        Prefix of temporary extraction directories.
    pretty_print
        Re-indent documents when saving.
    """

    missing_component_policy: str = "error"
    markup_tag_precedence: str = "first"
    extract_location: str = "temp"
    extract_prefix: str = "idml_"
    pretty_print: bool = True

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "PackageSettings":
        """Build settings from a raw mapping, validating every value.

        Raises:
            InvalidArgumentError: If a value is not one of the accepted choices
        """
        data = data or {}
        pretty = data.get("pretty_print", True)
        if not isinstance(pretty, bool):
            raise InvalidArgumentError(f"Invalid value for pretty_print: {pretty!r}")
        return cls(
            missing_component_policy=_choice(data, "missing_component_policy",
                                             MISSING_COMPONENT_POLICIES, "error"),
            markup_tag_precedence=_choice(data, "markup_tag_precedence",
                                          MARKUP_TAG_PRECEDENCES, "first"),
            extract_location=_choice(data, "extract_location", EXTRACT_LOCATIONS, "temp"),
            extract_prefix=str(data.get("extract_prefix") or "idml_"),
            pretty_print=pretty,
        )

    @classmethod
    def from_config(cls) -> "PackageSettings":
        """Settings from the ``package`` section of :class:`ConfigManager`."""
        return cls.from_mapping(ConfigManager().get_package_config())

    @property
    def skip_missing(self) -> bool:
        return self.missing_component_policy == "skip"
