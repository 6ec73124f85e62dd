import logging
import os
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple, Optional, Union

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
}


# PUBLIC_INTERFACE
class StaticRoute(NamedTuple):
    """A URL served straight from a file on disk."""
    file_path: Path
    content_type: str


def route_for(relative: PurePosixPath) -> Optional[str]:
    """
    URL path for a file relative to the public root, or None when the file is not served.
    Pages drop their .html suffix and a trailing index segment: index.html -> /, docs/index.html -> /docs.
    """
    suffix = relative.suffix.lower()
    if suffix not in CONTENT_TYPES:
        return None
    if suffix != ".html":
        return "/" + relative.as_posix()

    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts.pop()
    return "/" + "/".join(parts)


def _walk(directory: Path, root: Path, routes: Dict[str, StaticRoute]):
    with os.scandir(directory) as entries:
        for entry in sorted(entries, key=lambda e: e.name):
            path = Path(entry.path)
            if entry.is_dir():
                _walk(path, root, routes)
            elif entry.is_file():
                relative = PurePosixPath(path.relative_to(root).as_posix())
                url = route_for(relative)
                if url is None:
                    continue
                route = StaticRoute(path.resolve(), CONTENT_TYPES[relative.suffix.lower()])
                routes[url] = route
                # The literal file path keeps working next to the clean URL
                routes.setdefault("/" + relative.as_posix(), route)


# PUBLIC_INTERFACE
def build_static_routes(root_dir: Union[str, Path]) -> Mapping[str, StaticRoute]:
    """
    Scan root_dir once and return a read-only table of URL path -> StaticRoute.
    Only .html, .css and .js files are routable.
    """
    root = Path(root_dir)
    routes: Dict[str, StaticRoute] = {}
    if not root.is_dir():
        logger.warning("Public directory %s not found, no static routes served", root)
        return MappingProxyType(routes)

    _walk(root, root, routes)
    logger.info("Loaded %d static routes from %s", len(routes), root)
    return MappingProxyType(routes)
