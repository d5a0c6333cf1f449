from urllib.parse import urlencode

from facetagger.config import Settings


def _gateway_url(settings: Settings, params: dict) -> str:
    return f"{settings.PUBLIC_BASE_URL}/?{urlencode(params)}"


def image_url(settings: Settings, object_id: str) -> str:
    """Public link to a source image served by the gateway endpoint."""
    return _gateway_url(settings, {"image": object_id})


def face_url(settings: Settings, face_id: str) -> str:
    """Public link to a face crop served by the gateway endpoint."""
    return _gateway_url(settings, {"face": face_id})
