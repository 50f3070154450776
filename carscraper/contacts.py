"""
Seller contact extraction from free text.

Phone lookup is an ordered list of rules, first hit wins:

1. fragments carrying a contact cue ("call", "text", ...), digits nearest
   after the cue first;
2. remaining fragments that do not read like VIN/price/mileage/year text;
3. a direct NNN-NNN-NNNN pattern scan, still skipping non-phone context.

A fragment with a literal cue word is always examined, even if it also
mentions a VIN or a price. A fragment without a cue that matches non-phone
context is never used.
"""
import re
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .normalizer import deobfuscate_digits, digits_only, format_phone

CUE_RE = re.compile(
    r"\b(call|calls|text|txt|contact|reach|phone|cell|number|msg|message|reply|"
    r"mobile|tel|whatsapp)\b",
    re.I,
)

# Each entry marks a fragment whose digit runs are probably not a phone number.
NON_PHONE_CONTEXT = [
    re.compile(r"\bvin\b", re.I),
    re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b"),
    re.compile(r"\b(miles?|mileage|mi|kms?|odometer|odo)\b", re.I),
    re.compile(r"\$|\b(price|priced|asking|obo|usd|firm|msrp)\b", re.I),
    re.compile(r"\b(year|yr|model)\b", re.I),
    re.compile(r"\b(19[5-9]\d|20[0-4]\d)\s+[A-Z][a-z]+"),
    re.compile(r"\b(engine|motor|cc|hp|horsepower|liters?|litres?|cyl|cylinders?)\b", re.I),
    re.compile(r"\b(stock|stk)\b|#\s*\d", re.I),
]

FRAGMENT_SPLIT_RE = re.compile(r"[\n\r;!?]+|\.(?=\s|$)")
DIGIT_RUN_RE = re.compile(r"\+?\d(?:[ \-]?\d)*")
DIRECT_PHONE_RE = re.compile(r"(?:\+?1[\s.-]?)?\(?\b\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b")

EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.I)
_AT_RE = re.compile(r"\s*[\[\(\{]\s*at\s*[\]\)\}]\s*|\s+at\s+", re.I)
_DOT_RE = re.compile(r"\s*[\[\(\{]\s*dot\s*[\]\)\}]\s*|\s+dot\s+", re.I)


def split_fragments(text: Optional[str]) -> List[str]:
    """Split text into sentence-like fragments; "630.943.7111" stays whole."""
    if not text:
        return []
    return [f.strip() for f in FRAGMENT_SPLIT_RE.split(text) if f and f.strip()]


def has_cue(fragment: str) -> bool:
    return bool(CUE_RE.search(fragment or ""))


def is_non_phone_context(fragment: str) -> bool:
    return any(p.search(fragment or "") for p in NON_PHONE_CONTEXT)


def _group_windows(groups: List[str], size: int) -> Iterator[str]:
    """Contiguous runs of digit groups whose combined length is exactly size."""
    for i in range(len(groups)):
        total = ""
        for g in groups[i:]:
            total += g
            if len(total) == size:
                yield total
                break
            if len(total) > size:
                break


class ContactExtractor:
    """Pick the single best phone number and email address out of free text."""

    def __init__(self, ignored_numbers: Iterable[str] = (), min_digits: int = 7):
        self.ignored = {self._key(n) for n in ignored_numbers if digits_only(n)}
        self.min_digits = min_digits
        self.rules: List[Callable[[str, List[str]], Optional[str]]] = [
            self._from_cue_fragments,
            self._from_plain_fragments,
            self._from_direct_pattern,
        ]

    # --- phone ----------------------------------------------------------

    @staticmethod
    def _key(number: str) -> str:
        d = digits_only(number)
        if len(d) == 11 and d.startswith("1"):
            d = d[1:]
        return d

    def is_ignored(self, digits: str) -> bool:
        return self._key(digits) in self.ignored

    def plausible(self, digits: str, international: bool = False) -> bool:
        """Digit-count and area-code test for a phone candidate."""
        n = len(digits)
        if n < self.min_digits or n > 15:
            return False
        if n == 10:
            return digits[0] in "23456789"
        if n == 11:
            return digits[0] == "1" and digits[1] in "23456789"
        if n == 7:
            return True
        return international and 12 <= n <= 15

    def _accept(self, digits: str, international: bool = False) -> Optional[str]:
        if not self.plausible(digits, international) or self.is_ignored(digits):
            return None
        return format_phone(digits)

    def _from_run(self, run: str) -> Optional[str]:
        international = run.startswith("+")
        digits = digits_only(run)
        hit = self._accept(digits, international)
        if hit:
            return hit
        # only a run longer than any single number is split back into parts
        groups = [g for g in re.split(r"[ \-]", run.lstrip("+")) if g]
        if len(digits) <= 11 or len(groups) < 2:
            return None
        for size in (10, 11, 7):
            for window in _group_windows(groups, size):
                hit = self._accept(window)
                if hit:
                    return hit
        return None

    @staticmethod
    def _normalized_parts(fragment: str) -> List[str]:
        """
        Deobfuscated comma-separated parts of a fragment.

        A comma ends a digit run, so "eight seven two, two owners" does not
        grow an extra digit.
        """
        return [re.sub(r"\s*-\s*", "-", deobfuscate_digits(part)) for part in fragment.split(",")]

    def _from_fragment(self, fragment: str, anchor: int = 0) -> Optional[str]:
        parts = self._normalized_parts(fragment)
        runs = [((part_no, m.start()), m.group(0))
                for part_no, norm in enumerate(parts)
                for m in DIGIT_RUN_RE.finditer(norm)]
        if anchor:
            # digits after the cue word come first
            cue_at = (0, 0)
            for part_no, norm in enumerate(parts):
                cue = CUE_RE.search(norm)
                if cue:
                    cue_at = (part_no, cue.start())
                    break
            runs.sort(key=lambda r: r[0] < cue_at)
        for _, run in runs:
            hit = self._from_run(run)
            if hit:
                return hit
        return None

    def _from_cue_fragments(self, text: str, fragments: List[str]) -> Optional[str]:
        for frag in fragments:
            if has_cue(frag):
                hit = self._from_fragment(frag, anchor=1)
                if hit:
                    return hit
        return None

    def _from_plain_fragments(self, text: str, fragments: List[str]) -> Optional[str]:
        for frag in fragments:
            if has_cue(frag) or is_non_phone_context(frag):
                continue
            hit = self._from_fragment(frag)
            if hit:
                return hit
        return None

    def _from_direct_pattern(self, text: str, fragments: List[str]) -> Optional[str]:
        for frag in fragments:
            if is_non_phone_context(frag) and not has_cue(frag):
                continue
            for m in DIRECT_PHONE_RE.finditer(frag):
                hit = self._accept(digits_only(m.group(0)))
                if hit:
                    return hit
        return None

    def phone(self, text: Optional[str]) -> Optional[str]:
        """Best-guess phone number, formatted, or None."""
        if not text:
            return None
        fragments = split_fragments(text)
        for rule in self.rules:
            hit = rule(text, fragments)
            if hit:
                return hit
        return None

    # --- email ----------------------------------------------------------

    def email(self, text: Optional[str]) -> Optional[str]:
        """First email address, undoing [at]/(dot) style disguises if needed."""
        if not text:
            return None
        m = EMAIL_RE.search(text)
        if m:
            return m.group(0)
        s = _AT_RE.sub("@", text)
        s = _DOT_RE.sub(".", s)
        m = EMAIL_RE.search(s)
        return m.group(0) if m else None

    def extract(self, text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        return self.phone(text), self.email(text)


default_extractor = ContactExtractor()


def extract_phone(text: Optional[str]) -> Optional[str]:
    return default_extractor.phone(text)


def extract_email(text: Optional[str]) -> Optional[str]:
    return default_extractor.email(text)
