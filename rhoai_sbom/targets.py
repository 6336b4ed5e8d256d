from __future__ import annotations

import logging
from typing import Iterable

import requests

from .config import IMAGE_LIST_URL
from .errors import TargetListError

log = logging.getLogger(__name__)

IMAGE_MARKER = "quay.io"
HTTP_TIMEOUT = 30


def _normalize_line(line: str) -> str:
    # "- name: quay.io/..." and "- quay.io/..." both reduce to the bare reference
    line = line.replace("- name:", "", 1)
    line = line.replace("- ", "", 1)
    return "".join(line.split())


def parse_image_list(text: str, marker: str = IMAGE_MARKER) -> list[str]:
    """Turn the release markdown into image references.

    Only lines containing ``marker`` are kept. Consecutive duplicates are
    collapsed, non-adjacent duplicates are kept, blank results are dropped.
    """
    images: list[str] = []
    prev: str | None = None
    for raw in text.splitlines():
        if marker not in raw:
            continue
        image = _normalize_line(raw)
        if image == prev:
            continue
        prev = image
        if image:
            images.append(image)
    return images


def fetch_image_list(
    version: str,
    *,
    url_template: str = IMAGE_LIST_URL,
    session: requests.Session | None = None,
    timeout: float = HTTP_TIMEOUT,
) -> list[str]:
    url = url_template.format(version=version)
    log.debug("fetching image list from %s", url)
    http = session or requests.Session()
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise TargetListError(f"failed to fetch image list {url}: {e}") from e
    images = parse_image_list(resp.text)
    log.debug("image list for %s: %s", version, images)
    return images


class RemoteImageList:
    """Target source bound to one URL template, called with a version."""

    def __init__(self, url_template: str = IMAGE_LIST_URL, session: requests.Session | None = None) -> None:
        self.url_template = url_template
        self.session = session

    def __call__(self, version: str) -> list[str]:
        return fetch_image_list(version, url_template=self.url_template, session=self.session)


def drop_blank(targets: Iterable[str]) -> list[str]:
    return [t.strip() for t in targets if t and t.strip()]
