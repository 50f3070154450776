"""
Text normalization for phone-number judgment.

Sellers disguise numbers to dodge site filters: "six three 0 - nine4three",
keycap emoji, circled digits, or a letter O in place of a zero. The helpers
here turn such fragments back into plain digit text. Every function is pure
and total: any input, including None, yields a string.
"""
import re
from typing import Optional

UNIT_WORDS = {
    "zero": "0", "one": "1", "two": "2", "three": "3", "four": "4",
    "five": "5", "six": "6", "seven": "7", "eight": "8", "nine": "9",
}

TEEN_WORDS = {
    "ten": "10", "eleven": "11", "twelve": "12", "thirteen": "13",
    "fourteen": "14", "fifteen": "15", "sixteen": "16", "seventeen": "17",
    "eighteen": "18", "nineteen": "19",
}

TENS_WORDS = {
    "twenty": "2", "thirty": "3", "forty": "4", "fourty": "4", "fifty": "5",
    "sixty": "6", "seventy": "7", "eighty": "8", "ninety": "9",
}

# Letter boundaries instead of \b: "someone" keeps its "one", but "9zero8"
# still resolves because digits do not count as letters.
_NB = r"(?<![A-Za-z])"
_NA = r"(?![A-Za-z])"

_UNITS_ALT = "|".join(UNIT_WORDS)
_TENS_RE = re.compile(
    rf"{_NB}({'|'.join(TENS_WORDS)})(?:[\s-]?({_UNITS_ALT}))?{_NA}", re.I
)
_TEENS_RE = re.compile(rf"{_NB}({'|'.join(TEEN_WORDS)}){_NA}", re.I)
_UNITS_RE = re.compile(rf"{_NB}({_UNITS_ALT}){_NA}", re.I)


def _glyph_table() -> dict:
    table = {}
    # circled 1-9, circled 0
    for i in range(9):
        table[chr(0x2460 + i)] = str(i + 1)
    table["\u24ea"] = "0"
    # negative circled / sans-serif circled / negative sans-serif circled 1-9
    for base in (0x2776, 0x2780, 0x278A):
        for i in range(9):
            table[chr(base + i)] = str(i + 1)
    table["\u24ff"] = "0"
    # parenthesized 1-9 and digit-full-stop 1-9
    for base in (0x2474, 0x2488):
        for i in range(9):
            table[chr(base + i)] = str(i + 1)
    # fullwidth 0-9
    for i in range(10):
        table[chr(0xFF10 + i)] = str(i)
    # mathematical bold, double-struck, sans-serif, sans-serif bold, monospace
    for base in (0x1D7CE, 0x1D7D8, 0x1D7E2, 0x1D7EC, 0x1D7F6):
        for i in range(10):
            table[chr(base + i)] = str(i)
    # keycap parts: variation selector-16 and combining enclosing keycap
    table["\ufe0f"] = ""
    table["\u20e3"] = ""
    # keycap ten
    table["\U0001f51f"] = "10"
    return table


EMOJI_DIGITS = str.maketrans(_glyph_table())

# a run of o/O outside any word ("8OO", "01OO", "o"); the replacement
# checks for a digit beside the run or one space away
_LETTER_O_RE = re.compile(
    r"(?<![A-Za-z])[oO]+(?![A-Za-z])"
)

_PUNCT_RE = re.compile(r"[().\/,:]")
_WS_RE = re.compile(r"\s+")


def _tens_repl(m: re.Match) -> str:
    tens = TENS_WORDS[m.group(1).lower()]
    unit = m.group(2)
    return tens + (UNIT_WORDS[unit.lower()] if unit else "0")


def _letter_o_repl(m: re.Match) -> str:
    s = m.string
    i, j = m.span()
    before = s[max(0, i - 2):i]
    after = s[j:j + 2]
    near_digit = (
        (before[-1:].isdigit())
        or (after[:1].isdigit())
        or (len(before) == 2 and before[0].isdigit() and before[1].isspace())
        or (len(after) == 2 and after[0].isspace() and after[1].isdigit())
    )
    return "0" * (j - i) if near_digit else m.group(0)


def spelled_to_digits(text: Optional[str]) -> str:
    """Replace spelled tens(+unit), teens and unit words with digits."""
    if not text:
        return ""
    s = _TENS_RE.sub(_tens_repl, text)
    s = _TEENS_RE.sub(lambda m: TEEN_WORDS[m.group(1).lower()], s)
    s = _UNITS_RE.sub(lambda m: UNIT_WORDS[m.group(1).lower()], s)
    return s


def emoji_to_digits(text: Optional[str]) -> str:
    """Replace keycap, circled, fullwidth and math-alphabet digits."""
    if not text:
        return ""
    return text.translate(EMOJI_DIGITS)


def letter_o_to_zero(text: Optional[str]) -> str:
    """Swap a standalone run of o/O for zeros when it sits next to a digit."""
    if not text:
        return ""
    return _LETTER_O_RE.sub(_letter_o_repl, text)


def deobfuscate_digits(text: Optional[str]) -> str:
    """
    Undo common digit disguises in a text fragment.

    Steps run in a fixed order: spelled numbers, emoji digits, letter O,
    punctuation to spaces, whitespace collapse.
    """
    if not text:
        return ""
    s = spelled_to_digits(text)
    s = emoji_to_digits(s)
    s = letter_o_to_zero(s)
    s = _PUNCT_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s)
    return s.strip()


def digits_only(text: Optional[str]) -> str:
    """Strip every character that is not an ASCII digit."""
    if not text:
        return ""
    return "".join(ch for ch in text if "0" <= ch <= "9")


def format_phone(digits: Optional[str]) -> str:
    """Group a digit string as XXX-XXXX, XXX-XXX-XXXX or X-XXX-XXX-XXXX."""
    d = digits_only(digits)
    if len(d) == 7:
        return f"{d[:3]}-{d[3:]}"
    if len(d) == 10:
        return f"{d[:3]}-{d[3:6]}-{d[6:]}"
    if len(d) == 11 and d.startswith("1"):
        return f"{d[0]}-{d[1:4]}-{d[4:7]}-{d[7:]}"
    return d
