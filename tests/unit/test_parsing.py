from ai_image_organizer.parsing import ParseError, clean_model_text, parse_structured


def test_plain_object():
    out = parse_structured('{"content": "login_form", "confidence": 80}')
    assert out.ok
    assert out.value == {"content": "login_form", "confidence": 80}


def test_fenced_object():
    raw = '```json\n{"content": "react_error"}\n```'
    assert clean_model_text(raw) == '{"content": "react_error"}'
    assert parse_structured(raw).value == {"content": "react_error"}


def test_object_inside_chatter():
    raw = 'Sure! Here is the analysis:\n{"content": "photo", "theme": "travel"}\nHope this helps.'
    assert parse_structured(raw).value == {"content": "photo", "theme": "travel"}


def test_nested_object_uses_outermost_braces():
    raw = 'Result: {"categories": {"work": {"description": "Work", "images": [0]}}} done'
    assert parse_structured(raw).value["categories"]["work"]["images"] == [0]


def test_failures_are_reported_not_raised():
    for raw in (None, "", "   ", "no json here", "{broken", "[1, 2, 3]", "{not: valid} {json}"):
        out = parse_structured(raw)
        assert not out.ok, raw
        assert isinstance(out.error, ParseError)
        assert out.value is None
