from app.modules.templates.tagging import extract_tags


def test_duplicate_tokens_across_subject_and_body_yield_one_tag():
    assert extract_tags("Hi {{name}}", "{{name}} {{name}}") == {"name"}


def test_extraction_is_idempotent():
    subject, body = "Order {{order_id}}", "Dear {{ name }}, you owe {{amount}}."
    assert extract_tags(subject, body) == extract_tags(subject, body) == {"order_id", "name", "amount"}


def test_tokens_are_trimmed_and_blank_tokens_dropped():
    assert extract_tags("{{  first }}", "{{ }} {{   }} {{last}}") == {"first", "last"}


def test_none_and_plain_text():
    assert extract_tags(None, None) == set()
    assert extract_tags("No tags", "still none {single}") == set()


def test_non_greedy_match():
    assert extract_tags("", "{{a}} and {{b}}") == {"a", "b"}
