from studydoc.content import BlockKind, classify_content, split_segments, strip_markdown


def test_block_count_matches_non_empty_segments_in_order():
    text = "First para\nstill first\n\nSecond\n\n\n   \n\nThird\n"
    blocks = classify_content(text)
    assert [b.text for b in blocks] == ["First para\nstill first", "Second", "Third"]


def test_split_segments_discards_whitespace_only_lines():
    assert split_segments("  \n\t\nA\n \nB") == ["A", "B"]
    assert split_segments("") == []
    assert split_segments(None) == []


def test_allow_list_header_splits_at_first_colon():
    (block,) = classify_content("Main Idea: Cells divide: mitosis and meiosis.")
    assert block.kind is BlockKind.HEADER
    assert block.label == "Main Idea:"
    assert block.remainder == "Cells divide: mitosis and meiosis."


def test_allow_list_is_case_insensitive_and_anchored():
    assert classify_content("page 12 analysis: overview")[0].is_header
    assert classify_content("EXPERT INSIGHT: watch the units")[0].is_header
    assert not classify_content("The Main Idea: is not at the start")[0].is_header


def test_allow_list_header_without_colon():
    (block,) = classify_content("Create and Refine Usage Policy")
    assert block.is_header
    assert block.label == "Create and Refine Usage Policy"
    assert block.remainder is None


def test_markdown_heading_marks_header():
    (block,) = classify_content("### Photosynthesis basics")
    assert block.is_header
    assert block.text == "Photosynthesis basics"
    assert block.label == "Photosynthesis basics"


def test_bold_markers_mark_header_and_are_stripped():
    (block,) = classify_content("**Key Term:** osmosis moves water")
    assert block.is_header
    assert block.label == "Key Term:"
    assert block.remainder == "osmosis moves water"
    assert block.raw_text == "**Key Term:** osmosis moves water"


def test_colon_with_nothing_after_is_single_label():
    (block,) = classify_content("## Summary:")
    assert block.label == "Summary:"
    assert block.remainder is None


def test_body_blocks_are_cleaned_but_not_split():
    (block,) = classify_content("The *mitochondria* runs `atp_synthase` ~~slowly~~: see notes")
    assert block.kind is BlockKind.BODY
    assert block.text == "The mitochondria runs atp_synthase slowly: see notes"
    assert block.label is None and block.remainder is None


def test_strip_markdown_keeps_snake_case_and_removes_fences():
    assert strip_markdown("use snake_case_names here") == "use snake_case_names here"
    assert strip_markdown("```python\nx = 1\n```") == "x = 1"
    assert strip_markdown("***very*** _light_") == "very light"


def test_custom_prefixes_replace_the_allow_list():
    text = "Definition: a word\n\nMain Idea: no longer special"
    blocks = classify_content(text, header_prefixes=[r"Definition:"])
    assert [b.is_header for b in blocks] == [True, False]
