"""Basic usage example for typepack.

This example demonstrates how to:
- Describe records with dataclasses and fixed-width marker types
- Serialize into a new buffer, a caller buffer and a growable buffer
- Read values back and check the reported error kind
- Evolve a record with compatible fields
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import typepack
from typepack import Compatible, ErrorKind, Float32, UInt16, Variant
from typepack.logging import configure_logging


@dataclass
class Reading:
    sensor: UInt16
    label: str
    samples: List[Float32]
    unit: Optional[str] = None


@dataclass
class DeviceV1:
    name: str
    readings: List[Reading]


@dataclass
class DeviceV2:
    name: str
    readings: List[Reading]
    firmware: Compatible[str] = None
    counters: Compatible[Dict[str, int]] = None


def main():
    configure_logging(level=logging.DEBUG)

    device = DeviceV1("boiler", [Reading(1, "temp", [20.5, 21.0], "C")])

    # Serialize into a new bytes object
    data = typepack.serialize(device)
    print(f"Serialized {len(data)} bytes, type code 0x{typepack.get_type_code(DeviceV1):08x}")

    # Read it back
    result = typepack.deserialize(DeviceV1, data)
    if result.error is ErrorKind.OK:
        print(f"Decoded: {result.value}")

    # Serialize into a fixed buffer; 0 means it did not fit
    buffer = bytearray(16)
    written = typepack.serialize_to(buffer, device)
    print(f"Wrote {written} bytes into a 16-byte buffer")

    # Append several messages to one growable buffer
    stream = bytearray()
    first = typepack.serialize_append(stream, device)
    typepack.serialize_append(stream, 3.14, types=[Variant[int, float, str]])
    value = typepack.deserialize(Variant[int, float, str], stream, offset=first).value
    print(f"Second message holds {value!r}")

    # A reader with a different schema is rejected
    mismatch = typepack.deserialize(List[int], data)
    print(f"Reading with the wrong schema: {mismatch.error.name}")

    # Records evolve with compatible fields
    newer = typepack.serialize(DeviceV2("boiler", [], firmware="2.1"))
    old_view = typepack.deserialize(DeviceV1, newer)
    print(f"Old reader sees: {old_view.value}")

    new_view = typepack.deserialize(DeviceV2, typepack.serialize(DeviceV1("pump", [])))
    print(f"New reader sees: {new_view.value}")

    # Single field access without building the record
    name = typepack.get_field(DeviceV1, 0, data)
    print(f"Field 0: {name.value}")


if __name__ == "__main__":
    main()
