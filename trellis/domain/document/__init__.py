"""Versioned document codec.

Key Types:
    DocumentRecord - Current on-disk document shape
    NodeRecord - Flat wire form of a node
    ParseError - Decoding failure

Functions:
    encode / decode - YAML (default) or JSON document text
    encode_json / decode_json - Interchange encoding
    decode_legacy - Version-dispatched tolerant decoding
"""

from .codec import decode, decode_json, encode, encode_json, from_record, to_record
from .compat import DECODERS, decode_legacy
from .errors import ParseError
from .models import VERSION, DocumentRecord, GraphRecord, MetadataRecord, NodeRecord

__all__ = [
    "VERSION",
    "DocumentRecord",
    "GraphRecord",
    "MetadataRecord",
    "NodeRecord",
    "ParseError",
    "encode",
    "decode",
    "encode_json",
    "decode_json",
    "to_record",
    "from_record",
    "decode_legacy",
    "DECODERS",
]
