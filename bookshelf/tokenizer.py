"""Line tokenizer for the catalog's delimited dialect."""
from typing import List

DELIMITER = ","
QUOTE = '"'
ESCAPE = "\\"


def tokenize(line: str) -> List[str]:
    """
    Split one physical line into raw fields.

    A backslash makes the next character literal, a double quote toggles
    quoted state (delimiters are ignored while quoted) and is dropped.
    Inside quotes a doubled quote stands for one literal quote. An
    unterminated quote is accepted: the rest of the line stays quoted.

    Args:
        line: One line of the document, without its newline

    Returns:
        Raw field strings; always at least one (possibly empty)
    """
    fields = []
    current = []
    in_quotes = False
    escape_next = False

    i = 0
    length = len(line)
    while i < length:
        char = line[i]

        if escape_next:
            current.append(char)
            escape_next = False
        elif char == ESCAPE:
            escape_next = True
        elif char == QUOTE:
            if in_quotes and i + 1 < length and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

        i += 1

    fields.append("".join(current))
    return fields


def clean_field(raw: str) -> str:
    """Trim a raw field and unwrap one level of surviving quotes."""
    cleaned = raw.strip()
    if len(cleaned) >= 2 and cleaned.startswith(QUOTE) and cleaned.endswith(QUOTE):
        cleaned = cleaned[1:-1].replace(QUOTE * 2, QUOTE)
    return cleaned
