"""Build the payloads handed to the upload and insertion collaborators.

These helpers produce the dict structures the host's asset-upload and
document-insertion services expect.
"""

from __future__ import annotations

from typing import Any

from imagedrop.models import ImageDescriptor


def build_upload_request(
    descriptor: ImageDescriptor,
    ai_disclosure: str = "none",
) -> dict[str, Any]:
    """Build an asset-upload request for a validated descriptor.

    The descriptor's payload is used as both the image source and its
    thumbnail.

    Parameters
    ----------
    descriptor:
        A descriptor that has passed sniffing and dimension probing.
    ai_disclosure:
        Provenance disclosure flag (``"none"`` or ``"app_generated"``).

    Returns
    -------
    dict
        A request ready for :meth:`AssetUploader.upload`.
    """
    return {
        "type": "image",
        "mime_type": descriptor.mime_type.value,
        "url": descriptor.payload,
        "thumbnail_url": descriptor.payload,
        "width": descriptor.width,
        "height": descriptor.height,
        "ai_disclosure": ai_disclosure,
    }


def build_image_element(
    ref: str,
    alt_text: str,
    decorative: bool | None = None,
) -> dict[str, Any]:
    """Build an image element referencing an uploaded asset.

    Parameters
    ----------
    ref:
        The reference id from the upload collaborator's handle.
    alt_text:
        Alternative text for the image.
    decorative:
        Mark the image as decorative; ``None`` leaves it to the host.

    Returns
    -------
    dict
        An element ready for :meth:`DocumentInserter.insert`.
    """
    return {
        "type": "image",
        "ref": ref,
        "alt_text": {
            "text": alt_text,
            "decorative": decorative,
        },
    }
