from __future__ import annotations

import re

import pytest

from shadow_render.core.errors import RenderError

TAILWIND_DOCUMENT = (
    '<!DOCTYPE html><html><head><meta charset="utf-8">'
    '<script src="https://cdn.tailwindcss.com"></script>'
    "<style>*,::before,::after{--tw-ring-offset-width:0px}"
    ".bg-red-500{--tw-bg-opacity:1;background-color:rgb(239 68 68 / var(--tw-bg-opacity))}</style>"
    '</head><body><div class="bg-red-500">Hi</div></body></html>'
)


def _template(package: str, name: str) -> str:
    match = re.search(rf'<template class="{name}">(.*?)</template>', package, re.DOTALL)
    assert match is not None
    return match.group(1)


class TestHealth:
    def test_root_is_plain_ok(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.text == "OK"
        assert resp.headers["content-type"].startswith("text/plain")

    def test_healthz(self, client):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestRender:
    def test_shadow_package_returned(self, client, renderer):
        renderer.document = TAILWIND_DOCUMENT

        resp = client.post("/render", json={"html": '<div class="bg-red-500">Hi</div>'})

        assert resp.status_code == 200
        final_html = resp.json()["finalHtml"]
        assert final_html.count("<myco-shadow-box>") == 1
        assert _template(final_html, "shadow-html") == '<div class="bg-red-500">Hi</div>'
        assert ".bg-red-500" in _template(final_html, "shadow-css")
        assert renderer.calls == [('<div class="bg-red-500">Hi</div>', 0)]

    def test_wait_comes_from_settings(self, client, renderer, settings):
        settings.render_wait_ms = 1500

        client.post("/render", json={"html": "<p>x</p>"})

        assert renderer.calls == [("<p>x</p>", 1500)]

    def test_missing_html_renders_empty_body(self, client, renderer):
        resp = client.post("/render", json={})

        assert resp.status_code == 200
        assert renderer.calls == [("", 0)]

    def test_render_failure_is_500(self, client, renderer):
        renderer.error = RenderError("browser exited")

        resp = client.post("/render", json={"html": "<p>x</p>"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "render_failed"}


class TestRenderRaw:
    def test_returns_rendered_document(self, client, renderer):
        renderer.document = TAILWIND_DOCUMENT

        resp = client.post("/render-raw", json={"html": "<p>x</p>"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert resp.text == TAILWIND_DOCUMENT

    def test_render_failure_is_plain_500(self, client, renderer):
        renderer.error = RenderError("browser exited")

        resp = client.post("/render-raw", json={"html": "<p>x</p>"})

        assert resp.status_code == 500
        assert resp.text == "render failed"


class TestRenderCss:
    def test_minified_shadow_css(self, client):
        resp = client.post("/render-css", json={"html": "<style>.a{color:red}</style>", "minify": "true"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["cssShadow"] == ".a{color:red}"
        assert body["cssRootProps"] == ""
        assert body["info"]["inlineStyleBlocks"] == 1
        assert body["info"]["minified"] is True

    def test_flags_from_query(self, client):
        resp = client.post("/render-css?minify=1", json={"html": "<style>.a { color: red }</style>"})

        assert resp.json()["cssShadow"] == ".a{color:red}"

    @pytest.mark.parametrize("value", [1.5, ["1"], {"a": 1}, "yes", 0])
    def test_unusual_flag_values_read_as_off(self, client, value):
        resp = client.post("/render-css", json={"html": "<style>.a { color: red }</style>", "minify": value})

        assert resp.status_code == 200
        assert resp.json()["info"]["minified"] is False
        assert resp.json()["cssShadow"] != ".a{color:red}"

    def test_root_props_split_out(self, client):
        html = "<style>@property --x{syntax:'*';inherits:false}:root{--c:red}.a{color:var(--c)}</style>"

        resp = client.post("/render-css", json={"html": html, "includeRootVars": "1", "minify": "1"})

        body = resp.json()
        assert body["cssShadow"] == ".a{color:var(--c)}"
        assert body["cssRootProps"] == "@property --x{syntax:'*';inherits:false}\n:root{--c:red}"
        assert body["info"]["propertyRules"] == 1
        assert body["info"]["rootVarBlocks"] == 1

    def test_legacy_html(self, client):
        html = "<style>:root{--c:red}.a{color:red}</style>"

        resp = client.post(
            "/render-css",
            json={"html": html, "includeRootVars": "true", "minify": "true", "legacy": "true"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert '<style data-scope="root">\n:root{--c:red}\n</style>' in resp.text
        assert '<style data-scope="shadow">\n.a{color:red}\n</style>' in resp.text

    def test_linked_stylesheet_included(self, client, renderer, stylesheet_responses, fetched_urls):
        stylesheet_responses["https://cdn.jsdelivr.net/ok.css"] = (200, ".ok{color:blue}")
        renderer.document = (
            '<html><head><link rel="stylesheet" href="https://cdn.jsdelivr.net/missing.css">'
            '<link rel="stylesheet" href="https://cdn.jsdelivr.net/ok.css">'
            "<style>.a{color:red}</style></head><body></body></html>"
        )

        resp = client.post("/render-css", json={"html": "", "includeLinks": True, "minify": True})

        assert resp.status_code == 200
        body = resp.json()
        assert body["cssShadow"] == ".a{color:red}.ok{color:blue}"
        assert body["info"]["linkedStylesheets"] == 1
        assert fetched_urls == ["https://cdn.jsdelivr.net/missing.css", "https://cdn.jsdelivr.net/ok.css"]

    def test_links_ignored_without_flag(self, client, renderer, fetched_urls):
        renderer.document = '<link rel="stylesheet" href="https://cdn.jsdelivr.net/ok.css">'

        resp = client.post("/render-css", json={"html": ""})

        assert resp.status_code == 200
        assert fetched_urls == []

    def test_malformed_css_is_500(self, client):
        resp = client.post("/render-css", json={"html": "<style>.a color: red</style>"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "css_extraction_failed"}

    def test_render_failure_is_500(self, client, renderer):
        renderer.error = RenderError("browser exited")

        resp = client.post("/render-css", json={"html": ""})

        assert resp.status_code == 500
        assert resp.json() == {"error": "css_extraction_failed"}


class TestAuth:
    @pytest.fixture(autouse=True)
    def configure_token(self, settings):
        settings.render_token = "s3cret"

    @pytest.mark.parametrize("path", ["/render", "/render-css"])
    def test_missing_token_json_401(self, client, renderer, path):
        resp = client.post(path, json={"html": "<p>x</p>"})

        assert resp.status_code == 401
        assert resp.json() == {"error": "unauthorized"}
        assert renderer.calls == []

    def test_missing_token_plain_401(self, client, renderer):
        resp = client.post("/render-raw", json={"html": "<p>x</p>"})

        assert resp.status_code == 401
        assert resp.text == "unauthorized"
        assert renderer.calls == []

    def test_wrong_token_rejected(self, client, renderer):
        resp = client.post("/render", json={"html": "<p>x</p>"}, headers={"x-render-token": "nope"})

        assert resp.status_code == 401
        assert renderer.calls == []

    def test_correct_token_accepted(self, client, renderer):
        resp = client.post("/render", json={"html": "<p>x</p>"}, headers={"x-render-token": "s3cret"})

        assert resp.status_code == 200
        assert len(renderer.calls) == 1

    def test_health_not_protected(self, client):
        assert client.get("/").status_code == 200


class TestBodyLimit:
    def test_oversized_body_rejected(self, client, renderer):
        resp = client.post(
            "/render",
            content=b'{"html": "' + b"x" * (5 * 1024 * 1024) + b'"}',
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 413
        assert renderer.calls == []

    def test_oversized_chunked_body_rejected(self, client, renderer):
        def chunks():
            yield b'{"html": "'
            for _ in range(6):
                yield b"x" * (1024 * 1024)
            yield b'"}'

        resp = client.post("/render", content=chunks(), headers={"content-type": "application/json"})

        assert resp.status_code == 413
        assert resp.json() == {"error": "payload_too_large"}
        assert renderer.calls == []

    def test_small_chunked_body_reaches_route(self, client, renderer):
        def chunks():
            yield b'{"html": '
            yield b'"<p>streamed</p>"}'

        resp = client.post("/render", content=chunks(), headers={"content-type": "application/json"})

        assert resp.status_code == 200
        assert renderer.calls == [("<p>streamed</p>", 0)]
