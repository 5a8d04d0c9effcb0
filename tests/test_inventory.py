from __future__ import annotations

from smarttools.templates.models import TemplateSection
from smarttools.tokens.highlight import highlight, render_markup
from smarttools.tokens.inventory import (
    contains_smarttools,
    extract_dotphrase_identifiers,
    extract_smartlink_identifiers,
    extract_smartlists,
    extract_template_smartlists,
    summarize,
    summarize_template,
)
from smarttools.tokens.models import HighlightSpan, SmartListRef, SmartToolsSummary, TokenType


def test_highlight_maps_tokens_to_ordered_spans() -> None:
    content = "Hi @FNAME@, mood {Mood:304120108}. ***"

    assert highlight(content) == [
        HighlightSpan(start=3, end=10, type=TokenType.SMART_LINK),
        HighlightSpan(start=17, end=33, type=TokenType.SMART_LIST),
        HighlightSpan(start=35, end=38, type=TokenType.WILDCARD),
    ]


def test_highlight_spans_do_not_overlap() -> None:
    spans = highlight("@A@.hpi *** {Mood:1}{Affect:2} .ros")

    for previous, current in zip(spans, spans[1:]):
        assert previous.end <= current.start


def test_render_markup_wraps_each_token() -> None:
    assert render_markup("Use .hpi and @AGE@") == (
        "Use [[dotphrase:.hpi]] and [[smartlink:@AGE@]]"
    )
    assert render_markup("plain text") == "plain text"


def test_extract_smartlink_identifiers_sorted_and_unique() -> None:
    assert extract_smartlink_identifiers("@A@ text @A@ @B@") == ["A", "B"]
    assert extract_smartlink_identifiers("@ZED@ @ALPHA@ @ZED@") == ["ALPHA", "ZED"]


def test_extract_dotphrase_identifiers_sorted_and_unique() -> None:
    assert extract_dotphrase_identifiers(".ros .hpi .ros") == ["hpi", "ros"]


def test_extract_smartlists_first_occurrence_wins() -> None:
    refs = extract_smartlists("{Mood:1} {Affect:2} {Mood Alt:1}")

    assert refs == [
        SmartListRef(catalog_id="1", display_name="Mood"),
        SmartListRef(catalog_id="2", display_name="Affect"),
    ]


def test_extract_template_smartlists_dedupes_across_sections() -> None:
    sections = [
        TemplateSection(order=1, name="MSE", content="{Mood:1} {Affect:2}"),
        TemplateSection(order=2, name="Sleep", content="{Sleep:3} {Mood:1}"),
    ]

    assert [ref.catalog_id for ref in extract_template_smartlists(sections)] == ["1", "2", "3"]


def test_summarize_counts_every_occurrence() -> None:
    summary = summarize("@A@ @A@ .hpi *** {Mood:1} ****")

    assert summary == SmartToolsSummary(smart_links=2, dot_phrases=1, wildcards=1, smart_lists=1)
    assert summary.total == 5
    assert summary.as_dict()["total"] == 5


def test_summarize_template_is_additive() -> None:
    sections = [
        TemplateSection(order=1, name="HPI", content="@FNAME@ presents with ***"),
        TemplateSection(order=2, name="MSE", content=".mse {Mood:1} {Affect:2}"),
        TemplateSection(order=3, name="Plan", content="*** follow up .plan"),
    ]
    joined = "\n\n".join(section.content for section in sections)

    assert summarize_template(sections) == summarize(joined)
    assert summarize_template(sections).total == 7


def test_summarize_template_empty_is_zero() -> None:
    assert summarize_template([]) == SmartToolsSummary()


def test_contains_smarttools() -> None:
    assert contains_smarttools("Needs ***")
    assert not contains_smarttools("Plain 2.5 mg.")
