from studydoc.content import classify_content
from studydoc.docs.assembler import LayoutOptions, assemble_document, pair_paragraphs
from studydoc.docs.model import ColumnSpec, ColumnStrategy, Margins, Paragraph, RowPair, TableEmulation

CONTENT = "\n\n".join([
    "Main Idea: one",
    "body two",
    "Expert Insight: three",
    "body four",
    "body five",
])


def test_native_flow_section():
    blocks = classify_content(CONTENT)
    doc = assemble_document("Guide", blocks, "formal", ColumnStrategy.NATIVE)
    assert doc.title == "Guide"
    assert len(doc.sections) == 1
    section = doc.sections[0]
    assert section.columns == ColumnSpec(count=2, gap_twips=708, separator_line=True)
    assert section.margins == Margins(1440, 1440, 1440, 1440)
    assert all(isinstance(item, Paragraph) for item in section.blocks)
    assert [p.text for p in section.blocks] == [
        "Guide", "Main Idea: one", "body two", "Expert Insight: three", "body four", "body five",
    ]


def test_table_emulation_pairs_odd_sequence():
    blocks = classify_content(CONTENT)
    doc = assemble_document("Guide", blocks, "formal", ColumnStrategy.TABLE)
    section = doc.sections[0]
    assert isinstance(section.columns, TableEmulation)
    title, *rows = section.blocks
    assert isinstance(title, Paragraph) and title.text == "Guide"
    assert len(rows) == 3
    assert all(isinstance(r, RowPair) for r in rows)
    assert [(r.left.text, r.right.text if r.right else None) for r in rows] == [
        ("Main Idea: one", "body two"),
        ("Expert Insight: three", "body four"),
        ("body five", None),
    ]


def test_pair_paragraphs_counts():
    paras = [Paragraph() for _ in range(7)]
    rows = pair_paragraphs(paras)
    assert len(rows) == 4
    assert rows[-1].right is None
    assert pair_paragraphs(paras[:4])[-1].right is paras[3]
    assert pair_paragraphs([]) == []


def test_layout_override_and_no_separator():
    layout = LayoutOptions(margins=Margins.uniform(720), column_gap_twips=360, column_separator=False)
    doc = assemble_document("T", classify_content("a\n\nb"), "formal", "native", layout)
    section = doc.sections[0]
    assert section.margins.left == 720
    assert section.columns.gap_twips == 360
    assert section.columns.separator_line is False


def test_palette_index_follows_block_order():
    blocks = classify_content("Main Idea: a\n\nMain Idea: b")
    doc = assemble_document("T", blocks, "colorful")
    _, first, second = doc.sections[0].blocks
    assert first.runs[0].color_hex != second.runs[0].color_hex
