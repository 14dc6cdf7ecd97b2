"""Tests for the line tokenizer."""
from bookshelf.tokenizer import clean_field, tokenize


def test_tokenize_plain_fields():
    """Test splitting unquoted fields on commas."""
    assert tokenize("a,b,c") == ["a", "b", "c"]


def test_tokenize_only_delimiters():
    """Test that a line of delimiters yields empty fields."""
    assert tokenize(",,,") == ["", "", "", ""]
    assert tokenize("") == [""]


def test_tokenize_quoted_delimiter():
    """Test that commas inside quotes do not split."""
    assert tokenize('1,"War, Peace",x') == ["1", "War, Peace", "x"]


def test_tokenize_escaped_delimiter():
    """Test that a backslash-escaped comma in an unquoted field does not split."""
    assert tokenize(r"1,War\, Peace,x") == ["1", "War, Peace", "x"]


def test_tokenize_escaped_backslash():
    """Test that an escaped backslash is kept once."""
    assert tokenize(r'"C:\\books",y') == ["C:\\books", "y"]


def test_tokenize_doubled_quote_inside_quotes():
    """Test that a doubled quote inside quotes is one literal quote."""
    assert tokenize('"say ""hi""",x') == ['say "hi"', "x"]
    assert tokenize('""""') == ['"']


def test_tokenize_empty_quoted_field():
    """Test that an empty quoted field stays empty."""
    assert tokenize('1,"",3') == ["1", "", "3"]


def test_tokenize_unterminated_quote():
    """Test that an unterminated quote swallows the rest of the line."""
    assert tokenize('1,"abc,def') == ["1", "abc,def"]


def test_tokenize_escaped_quote_is_literal():
    """Test that an escaped quote does not toggle quoted state."""
    assert tokenize(r'\"a,b\",c') == ['"a', 'b"', "c"]


def test_clean_field_trims_and_unwraps():
    """Test post-processing of raw fields."""
    assert clean_field("  plain  ") == "plain"
    assert clean_field(' "wrapped" ') == "wrapped"
    assert clean_field('"a""b"') == 'a"b'
    assert clean_field('"half') == '"half'
    assert clean_field('"') == '"'
