from sitebuilder.storage.content_types import (
    DEFAULT_CONTENT_TYPE,
    content_type_for_path,
    resolve_content_type,
)


def test_known_extensions():
    assert resolve_content_type("html") == "text/html"
    assert resolve_content_type("css") == "text/css"
    assert resolve_content_type("js") == "application/javascript"
    assert resolve_content_type("svg") == "image/svg+xml"
    assert resolve_content_type("woff2") == "font/woff2"
    assert resolve_content_type("eot") == "application/vnd.ms-fontobject"


def test_lookup_ignores_case_and_dot():
    assert resolve_content_type("PNG") == "image/png"
    assert resolve_content_type(".jpeg") == "image/jpeg"


def test_unknown_extension_falls_back():
    assert resolve_content_type("xyz") == DEFAULT_CONTENT_TYPE
    assert resolve_content_type("") == DEFAULT_CONTENT_TYPE


def test_path_lookup_uses_last_extension():
    assert content_type_for_path("css/site.min.css") == "text/css"
    assert content_type_for_path("assets/archive.tar.gz") == DEFAULT_CONTENT_TYPE
    assert content_type_for_path("LICENSE") == DEFAULT_CONTENT_TYPE
    assert content_type_for_path("folder.v2/README") == DEFAULT_CONTENT_TYPE
