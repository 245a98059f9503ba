import json

from content_pipeline.agents.output import render_html, render_markdown, render_output, render_record
from content_pipeline.models import EditedContent, GeneratedSchema

from payloads import EDITED_REPLY, SCHEMA_REPLY

EDITED = EditedContent.model_validate(EDITED_REPLY)
SCHEMA = GeneratedSchema.model_validate(SCHEMA_REPLY)


def test_markdown_layout() -> None:
    markdown = render_markdown(EDITED)
    assert markdown.startswith("# How to Brew Pour-Over Coffee at Home\n")
    headings = [line for line in markdown.splitlines() if line.startswith("#")]
    assert headings == [
        "# How to Brew Pour-Over Coffee at Home",
        "## What is pour-over coffee?",
        "## Choosing a grind size",
        "## Conclusion",
        "## Frequently Asked Questions",
        "### How long does pour-over take?",
    ]


def test_markdown_omits_empty_conclusion_and_faqs() -> None:
    bare = EditedContent.model_validate({**EDITED_REPLY, "conclusion": "", "faqs": []})
    markdown = render_markdown(bare)
    assert "## Conclusion" not in markdown
    assert "Frequently Asked Questions" not in markdown


def test_html_escapes_text_and_splits_paragraphs() -> None:
    html = render_html(EDITED, SCHEMA)
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Pour-Over Coffee Guide</title>" in html
    assert "<p>Pour over coffee is simple &amp; rewarding.</p>" in html
    assert "<p>You need four tools.</p>" in html
    assert 'itemtype="https://schema.org/Question"' in html
    assert '<p itemprop="text">About four minutes.</p>' in html


def test_html_embeds_json_ld_safely() -> None:
    schema = GeneratedSchema.model_validate(
        {**SCHEMA_REPLY, "article": {**SCHEMA_REPLY["article"], "headline": "Bad </script> title"}}
    )
    html = render_html(EDITED, schema)
    head = html.split("</head>")[0]
    assert head.count("</script>") == 1
    script = head.split('<script type="application/ld+json">')[1].split("</script>")[0]
    graph = json.loads(script.replace("<\\/", "</"))
    assert graph["@graph"][0]["headline"] == "Bad </script> title"


def test_record_deduplicates_keywords() -> None:
    record = render_record(EDITED, SCHEMA, ["pour over coffee", "grind size", " pour over coffee ", ""])
    assert record.meta.keywords == ["pour over coffee", "grind size"]
    assert record.meta.title == "Pour-Over Coffee Guide"
    wire = record.to_wire()
    assert set(wire) == {"meta", "content", "schema"}
    assert wire["schema"]["article"]["@type"] == "Article"


def test_render_output_is_deterministic() -> None:
    first = render_output(EDITED, SCHEMA, ["pour over coffee"])
    second = render_output(EDITED, SCHEMA, ["pour over coffee"])
    assert first == second
    assert first.word_count == 28
    assert set(first.to_wire()) == {"markdown", "html", "json", "wordCount"}
