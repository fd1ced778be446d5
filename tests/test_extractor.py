from __future__ import annotations

import pytest

from seo_audit.engine.document import Document
from seo_audit.engine.extractor import (
    analyze_images,
    analyze_url_structure,
    classify_links,
    clean_title,
    detect_mixed_content,
    detect_pagination,
    detect_resource_hints,
    extract_meta,
    extract_signals,
    keyword_density,
    primary_keyword,
    text_to_code_ratio,
    validate_hreflang,
    validate_structured_data,
)


def test_clean_title_removes_tool_suffix():
    assert clean_title("Foo - SEO Audit Tool") == "Foo"
    assert clean_title("Bar | SEO Audit Tool | extra") == "Bar"
    assert clean_title("  Plain title ") == "Plain title"


def test_link_classification():
    html = """
    <a href="/about">a</a>
    <a href="https://example.com/blog">b</a>
    <a href="http://example.com/old">c</a>
    <a href="https://other.org/">d</a>
    <a href="mailto:me@example.com">e</a>
    <a href="#top">f</a>
    <a>no href</a>
    """
    result = classify_links(Document.parse(html), "https://example.com/page")
    assert result == {"internalLinks": 3, "externalLinks": 1}


def test_meta_extraction_defaults_to_empty_strings():
    assert extract_meta(Document.parse("<html><head></head></html>")) == {
        "metaDescription": "",
        "robotsMeta": "",
        "keywordsMeta": "",
        "viewportMeta": "",
        "canonicalUrl": "",
    }


def test_meta_extraction():
    html = """
    <head>
      <meta name="Description" content=" A page ">
      <meta name="robots" content="noindex, follow">
      <meta name="keywords" content="a,b">
      <meta name="viewport" content="width=device-width, initial-scale=1">
      <link rel="canonical" href="https://example.com/">
    </head>
    """
    meta = extract_meta(Document.parse(html))
    assert meta["metaDescription"] == "A page"
    assert meta["robotsMeta"] == "noindex, follow"
    assert meta["keywordsMeta"] == "a,b"
    assert meta["viewportMeta"].startswith("width=device-width")
    assert meta["canonicalUrl"] == "https://example.com/"


def test_resource_hints():
    html = """
    <link rel="preconnect" href="https://fonts.gstatic.com">
    <link rel="dns-prefetch" href="//cdn.example.com">
    <link rel="stylesheet" href="/a.css">
    """
    hints = detect_resource_hints(Document.parse(html))
    assert hints == {"hasPreload": False, "hasPreconnect": True, "hasDnsPrefetch": True, "count": 2}


def test_image_optimization():
    html = """
    <img src="a.png" loading="lazy">
    <img src="b.png" srcset="b-2x.png 2x">
    <img src="c.png" loading="eager">
    """
    assert analyze_images(Document.parse(html)) == {"total": 3, "lazyLoaded": 1, "withSrcset": 1}


def test_url_structure():
    assert analyze_url_structure("https://example.com/blog/post") == {
        "path": "/blog/post",
        "isClean": True,
        "lengthOk": True,
        "score": 100,
    }
    assert analyze_url_structure("https://example.com/My_Page")["score"] == 50
    long_bad = analyze_url_structure("https://example.com/" + "A_" * 60)
    assert long_bad["isClean"] is False
    assert long_bad["lengthOk"] is False
    assert long_bad["score"] == 0


def test_url_structure_parse_failure():
    assert analyze_url_structure("http://[::1") == {"path": "", "isClean": False, "lengthOk": False, "score": 0}


def test_text_to_code_ratio():
    assert text_to_code_ratio("abcd", "x" * 40) == pytest.approx(0.1)
    assert text_to_code_ratio("", "") == 0.0


def test_keyword_density():
    assert primary_keyword("The Coffee Guide") == "coffee"
    assert primary_keyword("and the for with") == ""
    keyword, density = keyword_density("The Coffee Guide", "coffee is great. Coffee beans are coffee.")
    assert keyword == "coffee"
    assert density == pytest.approx(3 / 7 * 100)


def test_keyword_density_empty_inputs():
    assert keyword_density("", "some body text")[1] == 0
    assert keyword_density("Coffee Guide", "")[1] == 0
    assert keyword_density("the and", "the and the")[1] == 0


def test_hreflang_requires_x_default():
    html = """
    <link rel="alternate" hreflang="en" href="https://example.com/en">
    <link rel="alternate" hreflang="de-DE" href="https://example.com/de">
    """
    info = validate_hreflang(Document.parse(html))
    assert info["hasHreflang"] is True
    assert info["values"] == ["en", "de-DE"]
    assert info["errors"] == ["Missing x-default hreflang"]


def test_hreflang_valid_and_invalid_codes():
    html = """
    <link rel="alternate" hreflang="x-default" href="https://example.com/">
    <link rel="alternate" hreflang="en_US" href="https://example.com/us">
    """
    info = validate_hreflang(Document.parse(html))
    assert info["errors"] == ["Invalid hreflang code: en_US"]


def test_no_hreflang_is_not_an_error():
    info = validate_hreflang(Document.parse("<head></head>"))
    assert info == {"hasHreflang": False, "values": [], "errors": []}


def test_pagination():
    html = '<link rel="next" href="/page/3"><link rel="prev" href="/page/1">'
    assert detect_pagination(Document.parse(html)) == {"hasPrev": True, "hasNext": True}
    assert detect_pagination(Document.parse("<p></p>")) == {"hasPrev": False, "hasNext": False}


def test_mixed_content_on_https_page():
    html = """
    <img src="http://cdn.example.com/a.png">
    <img src="https://cdn.example.com/b.png">
    <script src="http://cdn.example.com/app.js"></script>
    <link rel="stylesheet" href="http://cdn.example.com/site.css">
    <iframe src="https://video.example.com/embed"></iframe>
    """
    info = detect_mixed_content(Document.parse(html), "https://example.com/")
    assert info["applicable"] is True
    assert info["mixedCount"] == 3


def test_mixed_content_not_applicable_on_http_page():
    html = '<img src="http://x/a.png">'
    info = detect_mixed_content(Document.parse(html), "http://example.com/")
    assert info == {"applicable": False, "mixedCount": 0, "mixedUrls": []}


def test_structured_data_counts_parse_errors():
    html = """
    <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Organization"}</script>
    <script type="application/ld+json">{"@type": "Product",</script>
    <script type="application/ld+json">{"@graph": [{"@type": "WebSite"}, {"@type": ["Article", "NewsArticle"]}]}</script>
    <script>var x = 1;</script>
    """
    info = validate_structured_data(Document.parse(html))
    assert info["hasStructuredData"] is True
    assert info["blockCount"] == 3
    assert info["parseErrors"] == 1
    assert set(info["types"]) == {"Organization", "WebSite", "Article", "NewsArticle"}


def test_extract_signals_scenario_from_title_and_images():
    html = (
        "<html><head><title>Foo - SEO Audit Tool</title></head>"
        "<body><h1>A</h1><h1>B</h1><img src=x></body></html>"
    )
    signals = extract_signals(Document.parse(html), html, "https://example.com/")
    assert signals["title"] == "Foo"
    assert signals["imgCount"] == 1
    assert signals["imgWithAltCount"] == 0
    assert signals["hasSSL"] is True
    assert signals["hasMobileViewport"] is False


def test_body_text_skips_scripts_and_styles():
    html = "<body><p>Hello</p><script>var hidden = 1;</script><style>p{}</style><p>world</p></body>"
    document = Document.parse(html)
    assert document.body_text() == "Hello world"
    assert len(document.select_tag("script")) == 1
