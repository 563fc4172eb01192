"""Image pipeline stages: sniff, load, probe, build payloads, track state.

Exports
-------
sniff_bytes / sniff_remote
    Determine PNG or JPEG from bytes, a data URI, or a remote URL.
validate_url / load_file / load_url
    Normalise a source into a :class:`LoadedImage`.
probe_dimensions / measure_bytes
    Measure pixel width and height with Pillow.
build_upload_request / build_image_element
    Build the collaborator payloads.
PipelineStateMachine
    Track attempt lifecycle state and enforce valid transitions.
"""

from .attach import build_image_element, build_upload_request
from .load import (
    decode_data_uri,
    encode_data_uri,
    load_file,
    load_url,
    read_file,
    validate_url,
)
from .probe import measure_bytes, probe_dimensions
from .sniff import (
    match_signature,
    mime_from_data_uri,
    mime_from_extension,
    sniff_bytes,
    sniff_remote,
)
from .state import PipelineStateMachine

__all__ = [
    "PipelineStateMachine",
    "build_image_element",
    "build_upload_request",
    "decode_data_uri",
    "encode_data_uri",
    "load_file",
    "load_url",
    "match_signature",
    "measure_bytes",
    "mime_from_data_uri",
    "mime_from_extension",
    "probe_dimensions",
    "read_file",
    "sniff_bytes",
    "sniff_remote",
    "validate_url",
]
