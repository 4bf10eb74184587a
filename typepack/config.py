"""typepack configuration.

The settings here are part of the schema: two ends of a conversation
must use the same integer and float defaults, otherwise their type codes
differ and every message is rejected as a schema mismatch.

Example:
    Loading from YAML::

        config = PackConfig.from_yaml("typepack.yml")

    with a file such as::

        typepack:
          default_integer_type: INT64
          default_float_type: FLOAT64
          max_container_size: 1000000
"""

import os

import yaml

from typepack.exceptions import ConfigurationException
from typepack.serialization.kinds import WireKind, INTEGER_KINDS, FLOAT_KINDS, MAX_SIZE


CONFIG_ROOT_KEY = "typepack"


def _parse_kind(value, allowed, setting: str) -> WireKind:
    if isinstance(value, WireKind):
        kind = value
    elif isinstance(value, str):
        try:
            kind = WireKind[value.strip().upper()]
        except KeyError:
            raise ConfigurationException(f"{setting}: unknown type {value!r}")
    else:
        raise ConfigurationException(f"{setting} must be a type name, got {value!r}")
    if kind not in allowed:
        names = ", ".join(sorted(k.name for k in allowed))
        raise ConfigurationException(f"{setting} must be one of {names}, got {kind.name}")
    return kind


class PackConfig:
    """Configuration for the pack service.

    Args:
        default_integer_type: Wire kind for plain ``int`` and ``IntEnum``.
        default_float_type: Wire kind for plain ``float``.
        max_container_size: Largest element count of a string, container,
            set or map, on both the write and the read path.
    """

    def __init__(
        self,
        default_integer_type="INT32",
        default_float_type="FLOAT64",
        max_container_size: int = MAX_SIZE,
    ):
        self._default_integer_type = _parse_kind(
            default_integer_type, INTEGER_KINDS, "default_integer_type"
        )
        self._default_float_type = _parse_kind(
            default_float_type, FLOAT_KINDS, "default_float_type"
        )
        self._max_container_size = max_container_size
        self._validate()

    def _validate(self) -> None:
        if isinstance(self._max_container_size, bool) or not isinstance(self._max_container_size, int):
            raise ConfigurationException("max_container_size must be an integer")
        if self._max_container_size < 1 or self._max_container_size > MAX_SIZE:
            raise ConfigurationException(f"max_container_size must be between 1 and {MAX_SIZE}")

    @property
    def default_integer_type(self) -> WireKind:
        """Get the wire kind used for plain ``int``."""
        return self._default_integer_type

    @default_integer_type.setter
    def default_integer_type(self, value) -> None:
        self._default_integer_type = _parse_kind(value, INTEGER_KINDS, "default_integer_type")

    @property
    def default_float_type(self) -> WireKind:
        """Get the wire kind used for plain ``float``."""
        return self._default_float_type

    @default_float_type.setter
    def default_float_type(self, value) -> None:
        self._default_float_type = _parse_kind(value, FLOAT_KINDS, "default_float_type")

    @property
    def max_container_size(self) -> int:
        """Get the maximum element count of a container."""
        return self._max_container_size

    @max_container_size.setter
    def max_container_size(self, value: int) -> None:
        self._max_container_size = value
        self._validate()

    def to_dict(self) -> dict:
        return {
            "default_integer_type": self._default_integer_type.name,
            "default_float_type": self._default_float_type.name,
            "max_container_size": self._max_container_size,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackConfig):
            return False
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"PackConfig({self.to_dict()!r})"

    @classmethod
    def from_dict(cls, data: dict) -> "PackConfig":
        """Create PackConfig from a dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationException(f"Configuration must be a mapping, got {type(data).__name__}")
        if CONFIG_ROOT_KEY in data:
            data = data[CONFIG_ROOT_KEY]
            if data is None:
                data = {}
            elif not isinstance(data, dict):
                raise ConfigurationException(
                    f"'{CONFIG_ROOT_KEY}' section must be a mapping, got {type(data).__name__}"
                )
        unknown = set(data) - {"default_integer_type", "default_float_type", "max_container_size"}
        if unknown:
            raise ConfigurationException(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(
            default_integer_type=data.get("default_integer_type", "INT32"),
            default_float_type=data.get("default_float_type", "FLOAT64"),
            max_container_size=data.get("max_container_size", MAX_SIZE),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "PackConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file.

        Returns:
            PackConfig instance.

        Raises:
            ConfigurationException: If the file cannot be read or parsed.
        """
        if not os.path.exists(yaml_path):
            raise ConfigurationException(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)
        except IOError as e:
            raise ConfigurationException(f"Failed to read configuration file: {e}", cause=e)

        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> "PackConfig":
        """Load configuration from a YAML string.

        Raises:
            ConfigurationException: If the YAML cannot be parsed.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)

        return cls.from_dict(data or {})
