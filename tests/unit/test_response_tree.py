"""Parsing compiler service replies into ResponseNode trees."""

import pytest

from closure_build.exceptions import ProtocolError
from closure_build.transport import parse_response_tree


@pytest.mark.unit
def test_leaf_nodes_carry_text_and_parents_carry_children():
    nodes = parse_response_tree(
        b"<compilationResult>"
        b"<compiledCode>var a=1;</compiledCode>"
        b'<warnings><warning type="JSC_X" lineno="3">bad</warning></warnings>'
        b"</compilationResult>"
    )
    code, warnings = nodes
    assert code.tag == "compiledCode"
    assert code.value == "var a=1;"
    assert code.children == ()

    assert warnings.text == ""
    (warning,) = warnings.children
    assert warning.text == "bad"
    assert warning.attributes == {"type": "JSC_X", "lineno": "3"}


@pytest.mark.unit
def test_empty_element_has_empty_text():
    (node,) = parse_response_tree("<r><compiledCode/></r>")
    assert node.value == ""


@pytest.mark.unit
def test_attributes_are_read_only():
    (node,) = parse_response_tree(b'<r><e a="1">x</e></r>')
    with pytest.raises(TypeError):
        node.attributes["a"] = "2"  # type: ignore[index]


@pytest.mark.unit
@pytest.mark.parametrize("body", [b"", b"   ", b"<r><unclosed></r>", b"not xml"])
def test_malformed_documents_raise(body):
    with pytest.raises(ProtocolError):
        parse_response_tree(body)
