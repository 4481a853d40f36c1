"""
Measurement options.

Validates the options object sent by the controller, fills in defaults
and infers the IP version from literal address targets.
"""

import ipaddress
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .exceptions import InvalidOptionsError
from .models import Protocol


ALLOWED_IP_VERSIONS = (4, 6)


def literal_ip_version(target: Optional[str]) -> Optional[int]:
    """Return 4 or 6 if target is a literal address, None for hostnames."""
    if not target:
        return None
    try:
        return ipaddress.ip_address(target).version
    except ValueError:
        return None


class MeasurementOptions(BaseModel):
    """Validated options of a ping measurement."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    type: Literal["ping"] = "ping"
    in_progress_updates: bool = Field(default=False, alias="inProgressUpdates")
    target: str = Field(min_length=1)
    packets: int = Field(default=3, ge=1, le=16)
    protocol: str = Protocol.ICMP.value
    port: int = Field(default=80, ge=1, le=65535)
    ip_version: Optional[int] = Field(default=None, alias="ipVersion", validate_default=True)

    @field_validator("ip_version")
    @classmethod
    def infer_ip_version(cls, value: Optional[int], info: ValidationInfo) -> int:
        forced = literal_ip_version(info.data.get("target"))

        if forced is not None:
            if value is not None and value != forced:
                raise ValueError(f"must be {forced} for an IPv{forced} target")
            return forced

        if value is None:
            return 4
        if value not in ALLOWED_IP_VERSIONS:
            raise ValueError("must be one of [4, 6]")
        return value

    @property
    def is_tcp(self) -> bool:
        return self.protocol == Protocol.TCP.value

    @classmethod
    def validate_options(
        cls,
        options: Union["MeasurementOptions", Mapping[str, Any]],
    ) -> "MeasurementOptions":
        """
        Validate raw options.

        Raises:
            InvalidOptionsError: Carrying every offending field
        """
        if isinstance(options, cls):
            return options

        try:
            return cls.model_validate(options)
        except ValidationError as e:
            errors = [
                {
                    "field": ".".join(str(part) for part in error["loc"]) or "options",
                    "message": error["msg"],
                }
                for error in e.errors()
            ]
            raise InvalidOptionsError("ping", errors) from e
