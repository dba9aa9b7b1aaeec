"""Map encoding modes for messages from the generated modules.

The protobuf runtime writes map entries in whatever order its internal
storage yields, which is not stable across runs or implementations. Schemas
compiled with MapEncoding.SORTED are serialized with deterministic mode,
which orders map entries by key, so repeated encodings of the same message
are byte-identical.

The code generation manifest records the map encoding chosen for every
compiled schema; EncodingPolicy reads it back and picks the right encoder
for a message from its descriptor's file name.
"""

from enum import Enum
from typing import Dict, Iterable, Mapping

from google.protobuf.message import Message


class MapEncoding(Enum):
    """How map fields are ordered on the wire."""

    INSERTION = "insertion"
    SORTED = "sorted"


class MessageEncoder:
    """Serializes messages with a fixed map encoding."""

    def __init__(self, map_encoding: MapEncoding = MapEncoding.SORTED):
        self.map_encoding = map_encoding

    def encode(self, message: Message) -> bytes:
        """Serialize a message to bytes.

        Args:
            message: Any protobuf message

        Returns:
            Wire-format bytes; map entries sorted by key for SORTED
        """
        return message.SerializeToString(deterministic=self.map_encoding is MapEncoding.SORTED)


class EncodingPolicy:
    """Per-schema map encoding, keyed by schema path relative to its include root."""

    def __init__(
        self,
        encodings: Mapping[str, MapEncoding],
        default: MapEncoding = MapEncoding.INSERTION,
    ):
        self.encodings: Dict[str, MapEncoding] = dict(encodings)
        self.default = default

    @classmethod
    def from_manifest(cls, entries: Iterable[Mapping[str, str]]) -> "EncodingPolicy":
        """Build a policy from the 'generated' entries of the build metadata.

        Args:
            entries: Items with 'schema' and 'map_encoding' keys

        Returns:
            EncodingPolicy covering every listed schema
        """
        return cls({entry["schema"]: MapEncoding(entry["map_encoding"]) for entry in entries})

    def encoding_for(self, message: Message) -> MapEncoding:
        """Map encoding for the schema a message was defined in."""
        return self.encodings.get(message.DESCRIPTOR.file.name, self.default)

    def encode(self, message: Message) -> bytes:
        """Serialize a message with its schema's map encoding."""
        return MessageEncoder(self.encoding_for(message)).encode(message)
