import json

import pytest

from link_report import (
    EXPORT_HTML_FILENAME,
    EXPORT_JSON_FILENAME,
    export_payloads,
    parse_debug_record,
    render_link_list,
    serialize_debug_record,
)
from phrase_matcher import match_title


def test_render_link_list_opens_new_tab_without_referrer(dupatta_catalog):
    run = match_title("Soft Cotton Dupatta", dupatta_catalog)
    markup = render_link_list(run['matches'])

    assert markup.splitlines() == [
        '<ol class="related-links">',
        '  <li><a href="https://shop.example/plp/soft-cotton" target="_blank" '
        'rel="noopener noreferrer">Soft Cotton Edit</a></li>',
        '  <li><a href="https://shop.example/plp/cotton" target="_blank" '
        'rel="noopener noreferrer">Cotton Collection</a></li>',
        '</ol>',
    ]


def test_render_link_list_escapes_url_and_anchor():
    markup = render_link_list([{
        'url': 'https://shop.example/plp?c=silk&sort="new"',
        'anchor': 'Silk & <Satin>',
    }])
    assert 'href="https://shop.example/plp?c=silk&amp;sort=&quot;new&quot;"' in markup
    assert '>Silk &amp; &lt;Satin&gt;</a>' in markup


def test_render_link_list_empty():
    assert render_link_list([]) == ''


@pytest.mark.parametrize("strategy", ["exact", "scattered"])
def test_debug_record_round_trip(dupatta_catalog, strategy):
    run = match_title("Soft Cotton Dupatta in Pink", dupatta_catalog, strategy)
    text = serialize_debug_record(run['matches'])

    assert text.startswith('[\n  {\n    "phrase"')
    assert parse_debug_record(text) == [
        {
            'phrase': m['phrase'],
            'url': m['url'],
            'anchor': m['anchor'],
            'matchType': m['match_type'],
            'score': m['score'],
        }
        for m in run['matches']
    ]


@pytest.mark.parametrize("text", [
    "not json",
    json.dumps({"phrase": "silk"}),
    json.dumps([{"phrase": "silk", "url": "u", "anchor": "a", "score": 1}]),
])
def test_parse_debug_record_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_debug_record(text)


def test_export_is_noop_without_matches(dupatta_catalog):
    assert export_payloads(None) is None
    assert export_payloads(match_title("Linen Shirt", dupatta_catalog)) is None
    assert export_payloads(match_title("", dupatta_catalog)) is None


def test_export_payloads(dupatta_catalog):
    run = match_title("Soft Cotton Dupatta", dupatta_catalog)
    payloads = export_payloads(run)

    assert set(payloads) == {EXPORT_HTML_FILENAME, EXPORT_JSON_FILENAME}
    html_content, html_mime = payloads[EXPORT_HTML_FILENAME]
    json_content, json_mime = payloads[EXPORT_JSON_FILENAME]
    assert html_mime == "text/html"
    assert json_mime == "application/json"
    assert html_content == render_link_list(run['matches'])
    assert [r['phrase'] for r in json.loads(json_content)] == ["soft cotton", "cotton"]
